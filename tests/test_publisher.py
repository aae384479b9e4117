import pytest

from quizreel.events.publisher import JobEventPublisher
from quizreel.services.jobs import JobLifecycleManager
from quizreel.storage.repository import JobRepository


class FakeProducer:
    def __init__(self, fail_send=False):
        self.fail_send = fail_send
        self.sent = []
        self.flushes = 0
        self.closed = False

    def send(self, topic, key=None, value=None):
        if self.fail_send:
            raise RuntimeError("broker down")
        self.sent.append((topic, key, value))

    def flush(self):
        self.flushes += 1

    def close(self):
        self.closed = True


def test_events_are_keyed_by_job_and_flushed_when_finished(questions):
    producer = FakeProducer()
    lifecycle = JobLifecycleManager(
        JobRepository(), events=JobEventPublisher("", "video-updates", producer=producer)
    )
    job = lifecycle.create("Friday quiz", questions)
    lifecycle.start(job.id, 10, "Preparing backgrounds")
    lifecycle.complete(job.id, "/out/quiz.mp4")

    assert {topic for topic, _, _ in producer.sent} == {"video-updates"}
    assert {key for _, key, _ in producer.sent} == {str(job.id)}
    events = [value for _, _, value in producer.sent]
    assert [event["event"] for event in events] == ["job.progress", "job.progress", "job.finished"]
    assert [event["progress"] for event in events] == [0, 10, 100]
    assert events[-1]["job"]["output_path"] == "/out/quiz.mp4"
    assert producer.flushes == 1


def test_send_failures_are_logged_not_raised(questions):
    producer = FakeProducer(fail_send=True)
    lifecycle = JobLifecycleManager(JobRepository(), events=JobEventPublisher("", "t", producer=producer))
    job = lifecycle.create("Friday quiz", questions)
    assert lifecycle.get(job.id).status.value == "waiting"
    assert producer.flushes == 0


def test_close_flushes_and_closes():
    producer = FakeProducer()
    JobEventPublisher("", "t", producer=producer).close()
    assert producer.flushes == 1
    assert producer.closed


def test_topic_is_required():
    with pytest.raises(ValueError):
        JobEventPublisher("localhost:9092", "", producer=FakeProducer())
