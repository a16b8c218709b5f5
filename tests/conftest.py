import queue
import socket
import struct

import pytest

from hostPing import icmp, utils


def make_ip_header(source="192.0.2.2", destination="192.0.2.1", ihl=5, version=4,
                   options=b"", payload_length=0):
    total_length = ihl * 4 + payload_length
    return struct.pack('!BBHHHBBH4s4s', (version << 4) | ihl, 0, total_length, 0x1c46,
                       0x4000, 64, socket.IPPROTO_ICMP, 0,
                       socket.inet_aton(source), socket.inet_aton(destination)) + options


def make_datagram(icmp_type, identifier, sequence_number, body=b"payload",
                  source="192.0.2.2"):
    header = icmp.IcmpHeader(icmp_type, 0, identifier, sequence_number)
    header.checksum = utils.compute_checksum(header, body)
    message = header.encode() + body
    return make_ip_header(source=source, payload_length=len(message)) + message


class EchoSocket:
    """
    In-process stand-in for a raw ICMP socket.

    answer(sequence_number) decides whether a request gets an Echo Reply.
    With loopback=True every request is also delivered back as-is, the way
    a raw socket on lo sees its own outgoing requests.
    """

    def __init__(self, answer=lambda sequence_number: True, loopback=False,
                 noise=(), fail_send_after=None, fail_recv=False):
        self.answer = answer
        self.loopback = loopback
        self.noise = list(noise)
        self.fail_send_after = fail_send_after
        self.fail_recv = fail_recv
        self.inbox = queue.Queue()
        self.sent = []
        self.timeout = None
        self.closed = False

    def settimeout(self, timeout):
        self.timeout = timeout

    def sendto(self, data, address):
        if self.closed:
            raise OSError("socket closed")
        if self.fail_send_after is not None and len(self.sent) >= self.fail_send_after:
            raise OSError("network is unreachable")
        self.sent.append((bytes(data), address))
        request = icmp.IcmpHeader.decode(data)
        body = bytes(data[icmp.ICMP_HEADER_LENGTH:])
        for datagram in self.noise:
            self.inbox.put(datagram)
        if self.loopback:
            self.inbox.put(make_ip_header(source=address[0], payload_length=len(data)) + bytes(data))
        if self.answer(request.sequence_number):
            self.inbox.put(make_datagram(icmp.ECHO_REPLY, request.identifier,
                                         request.sequence_number, body, source=address[0]))

    def recv(self, bufsize):
        if self.fail_recv:
            raise OSError("connection reset")
        try:
            return self.inbox.get(timeout=self.timeout)
        except queue.Empty:
            raise socket.timeout("timed out")

    def close(self):
        self.closed = True


@pytest.fixture
def echo_socket():
    return EchoSocket
