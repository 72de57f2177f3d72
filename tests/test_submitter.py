import pytest

from gallery.exceptions import RemoteStoreError, SubmissionError
from gallery.models import TaskStatus
from gallery.sync import GenerationSubmitter


@pytest.fixture
def submitter(engine) -> GenerationSubmitter:
    return GenerationSubmitter(engine)


@pytest.fixture
def inputs(tmp_path):
    character = tmp_path / "hero.png"
    character.write_bytes(b"png")
    reference = tmp_path / "walk.mp4"
    reference.write_bytes(b"mp4")
    return character, reference


async def test_submit_moves_task_to_pending(submitter, gateway, store, inputs):
    character, reference = inputs
    gateway.next_job_id = "job-42"

    task = await submitter.submit("user-1", character, reference, "Alex", "Walk", 2, ["x"])

    assert task.status == TaskStatus.PENDING
    assert task.runway_task_id == "job-42"
    assert task.initial_metadata.character_asset_name == "hero.png"
    assert task.initial_metadata.reference_video_name == "walk.mp4"
    assert task.initial_metadata.tags == ["x"]
    assert gateway.tasks[task.id].status == TaskStatus.PENDING

    inserted = gateway.calls_to("insert_task")[0][1]
    assert inserted.status == TaskStatus.UPLOADING

    payload = gateway.calls_to("submit_job")[0][1]
    assert payload["character"] == {"type": "image", "uri": task.input_character_url}
    assert payload["reference"] == {"type": "video", "uri": task.input_reference_video_url}
    assert payload["model"] == "act_two"
    assert payload["ratio"] == "1280:720"
    assert task.input_character_url.startswith(
        "https://storage.googleapis.com/test-bucket/user-1/generation-inputs/"
    )
    assert len(gateway.objects) == 2


async def test_rejected_job_marks_task_failed(submitter, gateway, store, inputs):
    gateway.fail.add("submit_job")

    with pytest.raises(SubmissionError):
        await submitter.submit("user-1", *inputs, "Alex", "Walk")

    [task] = store.tasks
    assert task.status == TaskStatus.FAILED
    assert "bad input" in task.error_message
    assert task.runway_task_id is None


async def test_upload_failure_marks_task_failed(submitter, gateway, store, inputs):
    gateway.fail.add("upload_object")

    with pytest.raises(SubmissionError):
        await submitter.submit("user-1", *inputs, "Alex", "Walk")

    assert gateway.calls_to("submit_job") == []
    assert store.tasks[0].status == TaskStatus.FAILED


async def test_task_insert_failure_uploads_nothing(submitter, gateway, store, inputs):
    gateway.fail.add("insert_task")

    with pytest.raises(SubmissionError):
        await submitter.submit("user-1", *inputs, "Alex", "Walk")

    assert gateway.calls_to("upload_object") == []
    assert store.tasks == []


async def test_unrecorded_inputs_fail_before_submitting(submitter, gateway, store, inputs):
    gateway.fail.add("update_task")

    with pytest.raises(SubmissionError):
        await submitter.submit("user-1", *inputs, "Alex", "Walk")

    assert gateway.calls_to("submit_job") == []


async def test_unrecorded_job_is_cancelled_and_task_failed(submitter, gateway, store, inputs):
    update_task = gateway.update_task

    async def reject_pending(task_id, fields):
        if fields.get("status") == "PENDING":
            raise RemoteStoreError("write rejected")
        await update_task(task_id, fields)

    gateway.update_task = reject_pending

    with pytest.raises(SubmissionError):
        await submitter.submit("user-1", *inputs, "Alex", "Walk")

    assert gateway.calls_to("cancel_job") == [("cancel_job", "job-1")]
    [task] = store.tasks
    assert task.status == TaskStatus.FAILED
    assert "job-1" in task.error_message
