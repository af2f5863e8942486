import datetime as dt

import pytest

from packages.planner import schemas
from packages.planner.errors import ConflictError, NotFoundError, ValidationError
from packages.planner.models import ItemStatus
from packages.planner.tasks import TaskService, parse_due_date, parse_priority


def _create(service, workspace, **fields):
    request = schemas.TaskCreateRequest(**fields)
    return service.create_task(workspace.workspace.id, request, created_by_id=workspace.user.id)


def test_create_task_sets_defaults(session, workspace):
    service = TaskService(session)

    task = _create(service, workspace, title="  Buy milk  ", notes="   ")

    assert task.title == "Buy milk"
    assert task.notes is None
    assert task.priority == 2
    assert task.status is ItemStatus.ACTIVE
    assert task.is_pinned is False
    assert task.pinned_at is None
    assert task.deleted_at is None
    assert task.due_date is None
    assert task.created_by_id == workspace.user.id


def test_create_task_accepts_aliases(session, workspace):
    service = TaskService(session)
    request = schemas.TaskCreateRequest.model_validate(
        {"title": "Call mom", "details": "evening", "urgency": "3", "dueDate": "2024-06-01"}
    )

    task = service.create_task(workspace.workspace.id, request)

    assert task.notes == "evening"
    assert task.priority == 3
    assert task.due_date == dt.datetime(2024, 6, 1, tzinfo=dt.timezone.utc)


@pytest.mark.parametrize("title", [None, "", "   "])
def test_create_task_requires_title(session, workspace, title):
    with pytest.raises(ValidationError):
        _create(TaskService(session), workspace, title=title)


def test_create_task_rejects_bad_priority_and_date(session, workspace):
    service = TaskService(session)
    with pytest.raises(ValidationError):
        _create(service, workspace, title="x", priority=5)
    with pytest.raises(ValidationError):
        _create(service, workspace, title="x", due_date="not-a-date")


def test_create_task_conflicts_per_voice_note(session, workspace):
    service = TaskService(session)
    first = _create(service, workspace, title="From note", source_voice_note_id="note-1")

    with pytest.raises(ConflictError) as excinfo:
        _create(service, workspace, title="Again", source_voice_note_id="note-1")

    assert excinfo.value.status_code == 409
    assert excinfo.value.to_payload()["existingTaskId"] == first.id


def test_same_voice_note_allowed_in_other_workspace(session, workspace):
    from packages.planner.service import WorkspaceResolver

    other = WorkspaceResolver(session).resolve("other@example.com")
    service = TaskService(session)
    _create(service, workspace, title="Mine", source_voice_note_id="note-2")

    task = _create(service, other, title="Theirs", source_voice_note_id="note-2")

    assert task.workspace_id == other.workspace.id


def test_list_tasks_newest_first_with_status_filter(session, workspace, clock):
    service = TaskService(session, clock=clock)
    older = _create(service, workspace, title="older")
    clock.advance(minutes=1)
    newer = _create(service, workspace, title="newer")
    service.set_status(older.id, workspace.workspace.id, "archived")

    assert [t.id for t in service.list_tasks(workspace.workspace.id)] == [newer.id, older.id]
    assert [t.id for t in service.list_tasks(workspace.workspace.id, "archived")] == [older.id]
    with pytest.raises(ValidationError):
        service.list_tasks(workspace.workspace.id, "done")


def test_update_task_changes_only_given_fields(session, workspace):
    service = TaskService(session)
    task = _create(service, workspace, title="Draft", notes="keep", priority=1, due_date="2024-01-02")

    updated = service.update_task(
        task.id, workspace.workspace.id, schemas.TaskUpdateRequest(title="Final")
    )

    assert updated.title == "Final"
    assert updated.notes == "keep"
    assert updated.priority == 1
    assert updated.due_date is not None


def test_update_task_clears_due_date_and_notes(session, workspace):
    service = TaskService(session)
    task = _create(service, workspace, title="Draft", notes="n", due_date="2024-01-02")

    request = schemas.TaskUpdateRequest.model_validate({"dueDate": None, "notes": "  "})
    updated = service.update_task(task.id, workspace.workspace.id, request)

    assert updated.due_date is None
    assert updated.notes is None


def test_update_task_validation(session, workspace):
    service = TaskService(session)
    task = _create(service, workspace, title="Draft")

    for payload in ({"title": "  "}, {"priority": 0}, {"dueDate": "2024-13-40"}, {"notes": None}):
        with pytest.raises(ValidationError):
            service.update_task(
                task.id, workspace.workspace.id, schemas.TaskUpdateRequest.model_validate(payload)
            )

    with pytest.raises(NotFoundError):
        service.update_task("missing", workspace.workspace.id, schemas.TaskUpdateRequest(title="x"))


def test_status_transitions_track_deleted_at(session, workspace, clock):
    service = TaskService(session, clock=clock)
    task = _create(service, workspace, title="Trash me")

    deleted = service.set_status(task.id, workspace.workspace.id, "deleted")
    assert deleted.status is ItemStatus.DELETED
    assert deleted.deleted_at == clock.now

    restored = service.set_status(task.id, workspace.workspace.id, "active")
    assert restored.status is ItemStatus.ACTIVE
    assert restored.deleted_at is None

    with pytest.raises(ValidationError):
        service.set_status(task.id, workspace.workspace.id, "done")
    with pytest.raises(NotFoundError):
        service.set_status("missing", workspace.workspace.id, "archived")


def test_tasks_are_scoped_to_workspace(session, workspace):
    from packages.planner.service import WorkspaceResolver

    other = WorkspaceResolver(session).resolve("intruder@example.com")
    service = TaskService(session)
    task = _create(service, workspace, title="Private")

    with pytest.raises(NotFoundError):
        service.set_status(task.id, other.workspace.id, "deleted")
    assert service.list_tasks(other.workspace.id) == []


def test_pin_and_unpin(session, workspace, clock):
    service = TaskService(session, clock=clock)
    task = _create(service, workspace, title="Pin me")

    pinned = service.set_pinned(task.id, workspace.workspace.id, True)
    assert pinned.is_pinned is True
    assert pinned.pinned_at == clock.now

    unpinned = service.set_pinned(task.id, workspace.workspace.id, False)
    assert unpinned.is_pinned is False
    assert unpinned.pinned_at is None

    with pytest.raises(ValidationError):
        service.set_pinned(task.id, workspace.workspace.id, "yes")


def test_parse_priority():
    assert parse_priority(" 3 ") == 3
    assert parse_priority(None, default=2) == 2
    assert parse_priority("", default=2) == 2
    assert parse_priority(2.0) == 2
    for raw in (True, "high", 4, 2.5, 3.0000001):
        with pytest.raises(ValidationError):
            parse_priority(raw)


def test_parse_due_date():
    assert parse_due_date(None) is None
    assert parse_due_date("") is None
    assert parse_due_date("2024-03-05") == dt.datetime(2024, 3, 5, tzinfo=dt.timezone.utc)
    assert parse_due_date("2024-03-05T23:30:00-02:00") == dt.datetime(
        2024, 3, 6, tzinfo=dt.timezone.utc
    )
    with pytest.raises(ValidationError):
        parse_due_date(20240305)


def test_unfiltered_list_hides_deleted_tasks(session, workspace, clock):
    service = TaskService(session, clock=clock)
    active = _create(service, workspace, title="active")
    clock.advance(minutes=1)
    archived = _create(service, workspace, title="archived")
    service.set_status(archived.id, workspace.workspace.id, "archived")
    clock.advance(minutes=1)
    trashed = _create(service, workspace, title="trashed")
    service.set_status(trashed.id, workspace.workspace.id, "deleted")

    listed = [t.id for t in service.list_tasks(workspace.workspace.id)]

    assert listed == [archived.id, active.id]
    assert [t.id for t in service.list_tasks(workspace.workspace.id, "deleted")] == [trashed.id]


def test_conflict_detected_at_commit(session, workspace, monkeypatch):
    service = TaskService(session)
    first = _create(service, workspace, title="From note", source_voice_note_id="note-race")

    lookup = service._existing_for_note
    calls = []

    def stale_then_real(workspace_id, note_id):
        calls.append(note_id)
        if len(calls) == 1:
            return None
        return lookup(workspace_id, note_id)

    monkeypatch.setattr(service, "_existing_for_note", stale_then_real)

    with pytest.raises(ConflictError) as excinfo:
        _create(service, workspace, title="Raced", source_voice_note_id="note-race")

    assert excinfo.value.to_payload()["existingTaskId"] == first.id
    assert len(calls) == 2

    after = _create(service, workspace, title="Still usable")
    titles = {t.title for t in service.list_tasks(workspace.workspace.id)}
    assert titles == {"From note", "Still usable"}
    assert after.id != first.id


def test_whole_number_float_priority(session, workspace):
    service = TaskService(session)
    request = schemas.TaskCreateRequest.model_validate({"title": "float", "priority": 3.0})

    task = service.create_task(workspace.workspace.id, request)

    assert task.priority == 3
    with pytest.raises(ValidationError):
        _create(service, workspace, title="fraction", priority=1.5)
