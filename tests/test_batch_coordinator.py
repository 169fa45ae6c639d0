"""Tests for the batch coordinator."""

import threading
import time

import cv2
import pytest
from models.compression_profile import CompressionProfile
from models.compression_result import EncodedResult
from workers.batch_coordinator import BatchCoordinator
from workers.config import BatchConfig, default_max_concurrency
from utils.test_images import generate_noisy_gradient

PROFILE = CompressionProfile(quality=70, mode='balanced')


def _config(**overrides) -> BatchConfig:
    values = dict(max_concurrency=2, retry_limit=2, poll_interval=0.01)
    values.update(overrides)
    return BatchConfig(**values)


def _result(item, size=None):
    size = len(item.data) // 4 if size is None else size
    return EncodedResult(
        data=b'j' * size, original_size=len(item.data), original_dimensions=(1, 1),
        compressed_dimensions=(1, 1), actual_quality=0.7,
        compression_ratio=len(item.data) / max(size, 1)
    ), None


def _files(*sizes):
    return [(f"img{i}.jpg", b'x' * size) for i, size in enumerate(sizes)]


def test_concurrency_is_bounded():
    lock = threading.Lock()
    active = [0]
    peak = [0]

    def processor(item):
        with lock:
            active[0] += 1
            peak[0] = max(peak[0], active[0])
        time.sleep(0.05)
        with lock:
            active[0] -= 1
        return _result(item)

    coordinator = BatchCoordinator(_config(), processor)
    items = coordinator.add_to_queue(_files(10, 20, 30, 40, 50), PROFILE)

    assert coordinator.wait(timeout=5)
    assert peak[0] <= 2
    assert all(item.status == 'completed' for item in items)
    progress = coordinator.get_progress()
    assert progress.completed == 5
    assert progress.pending == 0
    assert progress.average_processing_time > 0


def test_always_failing_item_retries_then_fails():
    attempts = []
    failures = []

    def processor(item):
        attempts.append(item.id)
        raise RuntimeError("encoder exploded")

    coordinator = BatchCoordinator(_config(retry_limit=2), processor)
    coordinator.on_item_failed(lambda item, error: failures.append(error))
    [item] = coordinator.add_to_queue(_files(10), PROFILE)

    assert coordinator.wait(timeout=5)
    assert len(attempts) == 3
    assert item.status == 'failed'
    assert item.retry_count == 2
    assert item.error == "encoder exploded"
    assert failures == ["encoder exploded"]


def test_flaky_item_succeeds_on_retry():
    calls = []
    completed = []

    def processor(item):
        calls.append(item.id)
        if len(calls) == 1:
            raise RuntimeError("transient")
        return _result(item)

    coordinator = BatchCoordinator(_config(), processor)
    coordinator.on_item_completed(completed.append)
    [item] = coordinator.add_to_queue(_files(10), PROFILE)

    assert coordinator.wait(timeout=5)
    assert item.status == 'completed'
    assert item.retry_count == 1
    assert item.error is None
    assert completed == [item]


def test_pause_on_error_then_resume():
    def processor(item):
        if item.name == 'bad.jpg':
            raise ValueError("corrupt")
        return _result(item)

    coordinator = BatchCoordinator(
        _config(max_concurrency=1, retry_limit=0, pause_on_error=True), processor
    )
    files = [('good1.jpg', b'x' * 50), ('bad.jpg', b'x' * 5), ('good2.jpg', b'x' * 60)]
    items = coordinator.add_to_queue(files, PROFILE)
    assert [i.name for i in items] == ['bad.jpg', 'good1.jpg', 'good2.jpg']

    assert coordinator.wait(timeout=5)
    assert coordinator.get_status()['is_paused']
    progress = coordinator.get_progress()
    assert progress.failed == 1
    assert progress.pending == 0
    assert progress.paused == 2

    coordinator.resume()
    assert coordinator.wait(timeout=5)
    statuses = {i.name: i.status for i in coordinator.get_queue_items()}
    assert statuses == {'bad.jpg': 'failed', 'good1.jpg': 'completed', 'good2.jpg': 'completed'}


def test_small_files_first_with_stable_ties():
    order = []
    coordinator = BatchCoordinator(
        _config(max_concurrency=1), lambda item: (order.append(item.name), _result(item))[1]
    )
    files = [('a', b'x' * 30), ('b', b'x' * 10), ('c', b'x' * 20), ('d', b'x' * 10)]
    items = coordinator.add_to_queue(files, PROFILE)

    assert [i.name for i in items] == ['b', 'd', 'c', 'a']
    assert coordinator.wait(timeout=5)
    assert order == ['b', 'd', 'c', 'a']


def test_insertion_order_without_size_priority():
    coordinator = BatchCoordinator(
        _config(max_concurrency=1, prioritize_small_files=False), _result
    )
    items = coordinator.add_to_queue([('a', b'x' * 30), ('b', b'x' * 10)], PROFILE)
    assert [i.name for i in items] == ['a', 'b']
    assert coordinator.wait(timeout=5)


def test_invalid_priority():
    coordinator = BatchCoordinator(_config(), _result)
    with pytest.raises(ValueError):
        coordinator.add_to_queue(_files(10), PROFILE, priority='urgent')


def test_stop_clears_queue_and_discards_running_outcome():
    started = threading.Event()
    release = threading.Event()

    def processor(item):
        started.set()
        release.wait(timeout=5)
        return _result(item)

    coordinator = BatchCoordinator(_config(max_concurrency=1), processor)
    coordinator.add_to_queue(_files(10, 20), PROFILE)
    assert started.wait(timeout=5)

    coordinator.stop()
    assert coordinator.get_queue_items() == []
    assert not coordinator.get_status()['is_running']

    release.set()
    time.sleep(0.1)
    assert coordinator.get_queue_items() == []
    assert coordinator.get_progress().total == 0


def test_pause_before_adding_holds_items():
    coordinator = BatchCoordinator(_config(), _result)
    coordinator.pause()
    items = coordinator.add_to_queue(_files(10, 20), PROFILE)

    assert coordinator.wait(timeout=5)
    assert all(item.status == 'pending' for item in items)

    coordinator.resume()
    assert coordinator.wait(timeout=5)
    assert all(item.status == 'completed' for item in items)


def test_retry_failed_and_clear_completed():
    healthy = threading.Event()

    def processor(item):
        if not healthy.is_set():
            raise RuntimeError("down")
        return _result(item)

    coordinator = BatchCoordinator(_config(retry_limit=0), processor)
    [item] = coordinator.add_to_queue(_files(10), PROFILE)
    assert coordinator.wait(timeout=5)
    assert item.status == 'failed'

    healthy.set()
    coordinator.retry_failed()
    assert coordinator.wait(timeout=5)
    assert item.status == 'completed'
    assert item.retry_count == 0

    coordinator.clear_completed()
    assert coordinator.get_queue_items() == []


def test_progress_savings():
    coordinator = BatchCoordinator(_config(), lambda item: _result(item, size=25))
    coordinator.add_to_queue([('a', b'x' * 100), ('b', b'x' * 100)], PROFILE)
    assert coordinator.wait(timeout=5)

    progress = coordinator.get_progress()
    assert progress.total_savings == 150
    assert progress.total_savings_percentage == 75
    assert progress.estimated_time_remaining == 0


def test_listener_errors_do_not_stop_batch():
    def broken(progress):
        raise RuntimeError("listener bug")

    coordinator = BatchCoordinator(_config(), _result)
    coordinator.on_progress(broken)
    items = coordinator.add_to_queue(_files(10, 20), PROFILE)
    assert coordinator.wait(timeout=5)
    assert all(item.status == 'completed' for item in items)


def test_progress_snapshots_follow_item_transitions():
    snapshots = []
    done = threading.Event()

    def record(progress):
        snapshots.append(progress)
        if progress.completed + progress.failed == progress.total:
            done.set()

    def processor(item):
        time.sleep(0.01)
        if item.name == 'img2.jpg':
            raise RuntimeError("unreadable")
        return _result(item)

    coordinator = BatchCoordinator(_config(max_concurrency=2, retry_limit=1), processor)
    coordinator.on_progress(record)
    coordinator.add_to_queue(_files(10, 20, 30, 40, 50, 60), PROFILE)

    assert coordinator.wait(timeout=5)
    assert done.wait(timeout=5)

    for before, after in zip(snapshots, snapshots[1:]):
        assert after.completed >= before.completed
        assert after.failed >= before.failed
    assert all(s.processing <= 2 for s in snapshots)
    assert all(s.total == 6 for s in snapshots)

    last = snapshots[-1]
    assert last.completed == 5
    assert last.failed == 1
    assert last.completed + last.failed == last.total
    assert last.pending == 0
    assert last.processing == 0


def test_instances_are_isolated():
    first = BatchCoordinator(_config(), _result)
    second = BatchCoordinator(_config(), _result)
    first.add_to_queue(_files(10), PROFILE)
    assert first.wait(timeout=5)
    assert len(first.get_queue_items()) == 1
    assert second.get_queue_items() == []


def test_default_processor_end_to_end():
    raster = generate_noisy_gradient(64, 48)
    ok, buf = cv2.imencode('.png', cv2.cvtColor(raster.rgb, cv2.COLOR_RGB2BGR))
    assert ok

    coordinator = BatchCoordinator(_config())
    [item] = coordinator.add_to_queue([('noise.png', buf.tobytes())], PROFILE)
    assert coordinator.wait(timeout=10)

    assert item.status == 'completed'
    assert item.result.compressed_dimensions == (64, 48)
    assert 0 <= item.report.overall_quality <= 100
    assert item.processing_time is not None


def test_config_validation_and_update():
    with pytest.raises(ValueError):
        BatchConfig(max_concurrency=0)
    with pytest.raises(ValueError):
        BatchConfig(retry_limit=-1)
    with pytest.raises(ValueError):
        BatchConfig(ssim_method='local')

    assert 1 <= default_max_concurrency() <= 3

    coordinator = BatchCoordinator(_config())
    updated = coordinator.update_config(max_concurrency=3)
    assert updated.max_concurrency == 3
    assert coordinator.config.retry_limit == 2
    with pytest.raises(ValueError):
        coordinator.update_config(max_concurrency=0)
