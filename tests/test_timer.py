import threading

from httpd import RequestTimer, ResponseChannel


def test_channel_can_be_claimed_once():
    channel = ResponseChannel()
    assert channel.claim() is True
    assert channel.claim() is False


def test_cancel_before_deadline():
    fired = threading.Event()
    timer = RequestTimer(0.2, ResponseChannel(), fired.set)
    timer.start()

    assert timer.cancel() is True
    assert timer.state == RequestTimer.CANCELLED
    assert not fired.wait(0.4)
    assert timer.cancel() is False


def test_fires_after_deadline():
    fired = threading.Event()
    channel = ResponseChannel()
    timer = RequestTimer(0.05, channel, fired.set)
    timer.start()

    assert fired.wait(2)
    timer.wait(2)
    assert timer.state == RequestTimer.FIRED
    assert channel.claim() is False
    assert timer.cancel() is False
    assert timer.state == RequestTimer.FIRED


def test_does_not_fire_when_response_already_claimed():
    fired = threading.Event()
    channel = ResponseChannel()
    timer = RequestTimer(0.05, channel, fired.set)
    assert channel.claim()
    timer.start()

    assert not fired.wait(0.3)
    assert timer.state == RequestTimer.ARMED
    assert timer.cancel() is True
    assert timer.state == RequestTimer.CANCELLED
