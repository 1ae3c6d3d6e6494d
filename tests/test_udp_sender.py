"""Tests for the UDP broadcast sender."""

import socket

import pytest
from rbn_uploader import udp_sender
from rbn_uploader.udp_sender import BroadcastSender, ShortWriteError, TransportError


class FakeSocket:
    def __init__(self, *args, sent_delta=0, fail_setsockopt=False):
        self.sent_delta = sent_delta
        self.fail_setsockopt = fail_setsockopt
        self.options = {}
        self.sent = []
        self.closed = False

    def setsockopt(self, level, option, value):
        if self.fail_setsockopt:
            raise PermissionError("not permitted")
        self.options[(level, option)] = value

    def sendto(self, data, addr):
        self.sent.append((data, addr))
        return len(data) + self.sent_delta

    def close(self):
        self.closed = True


def patch_socket(monkeypatch, **kwargs):
    created = []

    def factory(*args):
        sock = FakeSocket(*args, **kwargs)
        created.append(sock)
        return sock

    monkeypatch.setattr(udp_sender.socket, "socket", factory)
    return created


class TestBroadcastSender:
    """Tests for socket setup and sending."""

    def test_enables_broadcast(self, monkeypatch):
        created = patch_socket(monkeypatch)
        with BroadcastSender("192.168.1.255", 2237):
            pass
        sock = created[0]
        assert sock.options[(socket.SOL_SOCKET, socket.SO_BROADCAST)] == 1
        assert sock.closed

    def test_send(self, monkeypatch):
        created = patch_socket(monkeypatch)
        with BroadcastSender("192.168.1.255", 2237) as sender:
            assert sender.send(b"abcd") == 4
            sender.send(b"xy")
        assert created[0].sent == [
            (b"abcd", ("192.168.1.255", 2237)),
            (b"xy", ("192.168.1.255", 2237)),
        ]
        assert sender.stats.to_dict() == {"datagrams_sent": 2, "bytes_sent": 6}

    def test_short_write(self, monkeypatch):
        patch_socket(monkeypatch, sent_delta=-1)
        with BroadcastSender("192.168.1.255", 2237) as sender:
            with pytest.raises(ShortWriteError) as excinfo:
                sender.send(b"abcd")
        assert excinfo.value.expected == 4
        assert excinfo.value.sent == 3
        assert sender.stats.datagrams_sent == 0

    def test_broadcast_permission_failure(self, monkeypatch):
        created = patch_socket(monkeypatch, fail_setsockopt=True)
        sender = BroadcastSender("192.168.1.255", 2237)
        with pytest.raises(TransportError):
            sender.open()
        assert created[0].closed

    def test_send_before_open(self):
        sender = BroadcastSender("192.168.1.255", 2237)
        with pytest.raises(TransportError):
            sender.send(b"abcd")

    def test_pause_sleeps(self, monkeypatch):
        slept = []
        monkeypatch.setattr(udp_sender.time, "sleep", slept.append)
        sender = BroadcastSender("192.168.1.255", 2237)
        sender.pause(0.001)
        sender.pause(0)
        assert slept == [0.001]
