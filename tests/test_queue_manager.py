"""Tests for the queue manager loop."""

import pytest

from errors import EmptyChainError
from options import Options
from queue_manager import LoopHooks, QueueManager
from shuffle_chain import ShuffleChain


def init_only():
    return LoopHooks(skip_init=False, keep_running=lambda: False)


def loop_once():
    calls = iter([True])
    return LoopHooks(skip_init=True, keep_running=lambda: next(calls, False))


def chain_of(*uris):
    chain = ShuffleChain()
    for uri in uris:
        chain.add(uri)
    return chain


class TestInitialize:

    def test_empty_queue(self, mpd, session):
        QueueManager(session, chain_of('song_a'), Options(), init_only()).run()

        assert mpd.queue == ['song_a']
        assert mpd.state == 'play'
        assert mpd.position == 0
        assert mpd.idle_calls == 0

    def test_already_playing(self, mpd, session):
        mpd.queue.append('song_a')
        mpd.play_at(0)
        chain = chain_of('song_a')

        QueueManager(session, chain, Options(), init_only()).run()

        assert mpd.queue == ['song_a']
        assert mpd.state == 'play'
        assert mpd.position == 0
        assert chain.recent() == []

    def test_paused_is_left_alone(self, mpd, session):
        mpd.queue.append('song_b')
        mpd.position = 0
        mpd.state = 'pause'

        QueueManager(session, chain_of('song_a'), Options(), init_only()).run()

        assert mpd.queue == ['song_b']
        assert mpd.state == 'pause'

    def test_stopped_with_previous_track(self, mpd, session):
        mpd.queue.append('song_b')
        mpd.position = 0
        mpd.state = 'stop'

        QueueManager(session, chain_of('song_a'), Options(), init_only()).run()

        assert mpd.queue == ['song_b', 'song_a']
        assert mpd.state == 'play'
        assert mpd.position == 1

    def test_fills_buffer(self, mpd, session):
        QueueManager(session, chain_of('song_a'), Options(queue_buffer=2), init_only()).run()

        assert len(mpd.queue) == 3
        assert mpd.position == 0
        assert mpd.state == 'play'

    def test_empty_chain_is_fatal(self, mpd, session):
        with pytest.raises(EmptyChainError):
            QueueManager(session, ShuffleChain(), Options(), init_only()).run()


class TestRefill:

    def test_past_end_of_queue(self, mpd, session):
        mpd.queue.append('song_b')
        mpd.position = None
        mpd.state = 'stop'

        QueueManager(session, chain_of('song_a'), Options(), loop_once()).run()

        assert mpd.queue == ['song_b', 'song_a']
        assert mpd.state == 'play'
        assert mpd.position == 1
        assert mpd.playing() == 'song_a'
        assert mpd.idle_calls == 1

    def test_empty_queue(self, mpd, session):
        QueueManager(session, chain_of('song_a'), Options(), loop_once()).run()

        assert mpd.queue == ['song_a']
        assert mpd.state == 'play'
        assert mpd.position == 0

    def test_empty_queue_with_buffer(self, mpd, session):
        QueueManager(session, chain_of('song_a'), Options(queue_buffer=3), loop_once()).run()

        # queue_buffer plus the track that is playing
        assert mpd.queue == ['song_a'] * 4
        assert mpd.state == 'play'
        assert mpd.position == 0

    def test_partial_buffer(self, mpd, session):
        mpd.queue.extend(['song_b'] * 3)
        mpd.play_at(1)

        QueueManager(session, chain_of('song_a'), Options(queue_buffer=3), loop_once()).run()

        assert mpd.queue == ['song_b'] * 3 + ['song_a'] * 2
        assert mpd.state == 'play'
        assert mpd.position == 1
        assert mpd.playing() == 'song_b'

    def test_full_queue_is_a_no_op(self, mpd, session):
        mpd.queue.extend(['song_b'] * 3)
        mpd.play_at(0)
        manager = QueueManager(session, chain_of('song_a'), Options(queue_buffer=2), loop_once())

        assert manager.check_and_refill() == 0
        assert mpd.queue == ['song_b'] * 3

    def test_stopped_mid_queue_is_not_restarted(self, mpd, session):
        mpd.queue.extend(['song_b'] * 2)
        mpd.position = 1
        mpd.state = 'stop'
        manager = QueueManager(session, chain_of('song_a'), Options(queue_buffer=1), loop_once())

        assert manager.check_and_refill() == 1
        assert mpd.state == 'stop'

    def test_runs_until_told_to_stop(self, mpd, session):
        answers = iter([True, True, True, False])
        hooks = LoopHooks(skip_init=True, keep_running=lambda: next(answers))

        QueueManager(session, chain_of('song_a'), Options(), hooks).run()

        assert mpd.idle_calls == 3
        assert mpd.queue == ['song_a']


class TestEnqueueOnly:

    def test_adds_without_starting_playback(self, mpd, session):
        QueueManager(session, chain_of('song_a', 'song_b'), Options(only=3)).enqueue_only(3)

        assert len(mpd.queue) == 3
        assert mpd.state == 'stop'
        assert mpd.position is None
        assert mpd.idle_calls == 0

    def test_does_not_interrupt_playback(self, mpd, session):
        mpd.queue.append('song_c')
        mpd.play_at(0)

        QueueManager(session, chain_of('song_a'), Options(only=2)).enqueue_only(2)

        assert mpd.queue == ['song_c', 'song_a', 'song_a']
        assert mpd.position == 0
