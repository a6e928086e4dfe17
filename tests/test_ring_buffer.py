from __future__ import annotations

import threading

import numpy as np
import pytest

from audiolab.ring_buffer import SampleRingBuffer


def test_exact_window_written_in_uneven_chunks_is_fetched_verbatim() -> None:
    n = 1024
    ring = SampleRingBuffer(n)
    data = np.random.default_rng(0).standard_normal(n).astype(np.float32)

    start = 0
    for size in (1, 255, 300, 17, 451):
        ring.add_samples(data[start:start + size], 1, size)
        start += size
    assert start == n

    out = np.zeros(n, dtype=np.float32)
    assert ring.fetch_window(out) is True
    assert out.tobytes() == data.tobytes()


def test_underrun_leaves_output_untouched() -> None:
    ring = SampleRingBuffer(8)
    ring.add_samples(np.arange(7, dtype=np.float32), 1, 7)

    out = np.full(8, -1.0, dtype=np.float32)
    assert ring.fetch_window(out) is False
    assert np.all(out == -1.0)


def test_fetch_returns_newest_samples_after_wraparound() -> None:
    ring = SampleRingBuffer(8)
    ring.add_samples(np.arange(5, dtype=np.float32), 1, 5)
    ring.add_samples(np.arange(5, 12, dtype=np.float32), 1, 7)

    out = np.zeros(8, dtype=np.float32)
    assert ring.fetch_window(out)
    assert out.tolist() == [4, 5, 6, 7, 8, 9, 10, 11]

    small = np.zeros(3, dtype=np.float32)
    assert ring.fetch_window(small)
    assert small.tolist() == [9, 10, 11]


def test_interleaved_input_keeps_channel_zero() -> None:
    ring = SampleRingBuffer(4)
    interleaved = np.array([0, 100, 1, 101, 2, 102, 3, 103], dtype=np.float32)
    ring.add_samples(interleaved, channel_count=2, frame_count=4)

    out = np.zeros(4, dtype=np.float32)
    assert ring.fetch_window(out)
    assert out.tolist() == [0, 1, 2, 3]


def test_frames_by_channels_block_keeps_channel_zero() -> None:
    ring = SampleRingBuffer(3)
    block = np.array([[0.5, -1.0], [0.25, -1.0], [0.125, -1.0]], dtype=np.float32)
    ring.add_samples(block, channel_count=2, frame_count=3)

    out = np.zeros(3, dtype=np.float32)
    assert ring.fetch_window(out)
    assert out.tolist() == [0.5, 0.25, 0.125]


def test_frame_count_limits_the_samples_taken() -> None:
    ring = SampleRingBuffer(8)
    ring.add_samples(np.arange(10, dtype=np.float32), 1, 4)
    assert ring.available == 4


def test_block_larger_than_capacity_keeps_the_newest_samples() -> None:
    ring = SampleRingBuffer(4)
    ring.add_samples(np.arange(10, dtype=np.float32), 1, 10)

    out = np.zeros(4, dtype=np.float32)
    assert ring.fetch_window(out)
    assert out.tolist() == [6, 7, 8, 9]
    assert ring.available == 4
    assert ring.fill_level == 1.0


def test_window_larger_than_capacity_is_rejected() -> None:
    ring = SampleRingBuffer(4)
    with pytest.raises(ValueError):
        ring.fetch_window(np.zeros(8, dtype=np.float32))


def test_clear_empties_the_buffer() -> None:
    ring = SampleRingBuffer(4)
    ring.add_samples(np.ones(4, dtype=np.float32), 1, 4)
    ring.clear()

    assert ring.available == 0
    assert ring.fetch_window(np.zeros(4, dtype=np.float32)) is False


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        SampleRingBuffer(0)


def test_concurrent_writer_and_reader_see_contiguous_windows() -> None:
    n = 512
    total = 200_000
    ring = SampleRingBuffer(n)
    # float32 holds every integer below 2**24 exactly
    ramp = np.arange(total, dtype=np.float32)
    done = threading.Event()

    def writer() -> None:
        sizes = (7, 131, 33, 509, 1)
        start = i = 0
        while start < total:
            block = ramp[start:start + sizes[i % len(sizes)]]
            ring.add_samples(block, 1, len(block))
            start += len(block)
            i += 1
        done.set()

    thread = threading.Thread(target=writer)
    thread.start()

    out = np.zeros(n, dtype=np.float32)
    windows = 0
    while not done.is_set() or windows == 0:
        if ring.fetch_window(out):
            windows += 1
            assert np.all(np.diff(out) == 1.0)
    thread.join()

    assert windows > 0
    assert ring.fetch_window(out)
    assert out[-1] == total - 1
