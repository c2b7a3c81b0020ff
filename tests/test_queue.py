import pytest

from rasvendor.queue import LinkQueue, QueueNode


def test_fifo_order():
    queue = LinkQueue()
    for t in range(3):
        queue.push(QueueNode(time=t, value=t * 10))
    popped = [queue.pop().value for _ in range(3)]
    assert popped == [0, 10, 20]
    assert queue.is_empty()


def test_front_does_not_remove():
    queue = LinkQueue()
    node = QueueNode(time=5, value=1)
    queue.push(node)
    assert queue.front() is node
    assert len(queue) == 1


def test_front_of_empty_queue_is_none():
    assert LinkQueue().front() is None


def test_pop_empty_raises():
    with pytest.raises(IndexError):
        LinkQueue().pop()


def test_clear_and_iteration():
    nodes = [QueueNode(time=i, value=i) for i in range(4)]
    queue = LinkQueue(nodes)
    assert list(queue) == nodes
    queue.clear()
    assert len(queue) == 0
    assert queue.is_empty()


def test_len_tracks_push_and_pop():
    queue = LinkQueue()
    queue.push(QueueNode(1, 1))
    queue.push(QueueNode(2, 2))
    queue.pop()
    assert len(queue) == 1
    assert queue.front() == QueueNode(2, 2)