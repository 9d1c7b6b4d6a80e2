"""Port reachability checks against a connection test server."""

from __future__ import annotations

import enum
import errno
import logging
import selectors
import socket
import time

log = logging.getLogger(__name__)

TEST_PORT_TIMEOUT_SEC = 3
PORT_FLAGS_MAX_COUNT = 32
MTU_TEST_SIZE = 1040
TEST_RESULT_INCONCLUSIVE = 0xFFFFFFFF

STAGE_RTSP_HANDSHAKE = 4
STAGE_CONTROL_STREAM_START = 8

ERROR_NO_VIDEO_TRAFFIC = -100

_TEST_PAYLOAD = b"moonlight-ctest".ljust(MTU_TEST_SIZE, b"\x00")
_CONNECT_PENDING = {errno.EINPROGRESS, errno.EWOULDBLOCK, errno.EAGAIN}


class PortFlag(enum.IntFlag):
    """One bit per port; the low byte holds TCP ports, the rest UDP ports."""

    TCP_47984 = 1 << 0
    TCP_47989 = 1 << 1
    TCP_48010 = 1 << 2
    UDP_47998 = 1 << 8
    UDP_47999 = 1 << 9
    UDP_48000 = 1 << 10
    UDP_48010 = 1 << 11


_PORT_BY_INDEX = {
    0: 47984,
    1: 47989,
    2: 48010,
    8: 47998,
    9: 47999,
    10: 48000,
    11: 48010,
}

VALID_PORT_FLAG_MASK = int(
    PortFlag.TCP_47984
    | PortFlag.TCP_47989
    | PortFlag.TCP_48010
    | PortFlag.UDP_47998
    | PortFlag.UDP_47999
    | PortFlag.UDP_48000
    | PortFlag.UDP_48010
)


def _set_bits(flags):
    return (i for i in range(PORT_FLAGS_MAX_COUNT) if flags & (1 << i))


def port_flags_from_stage(stage):
    """Return the ports worth testing after a failure in ``stage``."""
    if stage == STAGE_RTSP_HANDSHAKE:
        # A ping on UDP 48000 is needed for the RTSP handshake to complete.
        return PortFlag.TCP_48010 | PortFlag.UDP_48010 | PortFlag.UDP_48000
    if stage == STAGE_CONTROL_STREAM_START:
        return PortFlag.UDP_47999
    return PortFlag(0)


def port_flags_from_termination_error(error_code):
    """Return the ports worth testing after a termination with ``error_code``."""
    if error_code == ERROR_NO_VIDEO_TRAFFIC:
        return PortFlag.UDP_47998 | PortFlag.UDP_48000
    return PortFlag(0)


def protocol_from_port_flag_index(index):
    """Return IPPROTO_UDP or IPPROTO_TCP for a port flag bit index."""
    return socket.IPPROTO_UDP if index >= 8 else socket.IPPROTO_TCP


def port_from_port_flag_index(index):
    """Return the port number for a port flag bit index."""
    try:
        return _PORT_BY_INDEX[index]
    except KeyError:
        raise ValueError(f"no port for flag index {index}") from None


def _describe(index):
    proto = "UDP" if protocol_from_port_flag_index(index) == socket.IPPROTO_UDP else "TCP"
    return f"{proto} {port_from_port_flag_index(index)}"


def stringify_port_flags(port_flags, separator):
    """Describe the ports in ``port_flags``, e.g. ``"TCP 47984, UDP 48000"``."""
    if separator is None:
        separator = ""
    return separator.join(_describe(i) for i in _set_bits(int(port_flags)))


def _is_udp(index):
    return protocol_from_port_flag_index(index) == socket.IPPROTO_UDP


def test_client_connectivity(test_server, reference_port, test_port_flags):
    """Probe the requested ports on ``test_server``.

    Returns the flags of the ports that failed, 0 when all passed, or
    ``TEST_RESULT_INCONCLUSIVE`` when the test itself could not run.
    """
    test_port_flags = int(test_port_flags) & VALID_PORT_FLAG_MASK
    failing = test_port_flags
    if not test_port_flags:
        return 0

    try:
        infos = socket.getaddrinfo(
            test_server, reference_port, socket.AF_UNSPEC, socket.SOCK_STREAM
        )
        family, _, _, _, sockaddr = infos[0]
    except (OSError, IndexError) as exc:
        log.warning("Failed to resolve %s: %s", test_server, exc)
        return TEST_RESULT_INCONCLUSIVE

    sockets = {}
    pending = 0
    try:
        for index in _set_bits(test_port_flags):
            udp = _is_udp(index)
            port = port_from_port_flag_index(index)
            try:
                sock = socket.socket(
                    family,
                    socket.SOCK_DGRAM if udp else socket.SOCK_STREAM,
                    protocol_from_port_flag_index(index),
                )
            except OSError as exc:
                log.warning("Failed to create socket: %s", exc)
                return TEST_RESULT_INCONCLUSIVE
            sock.setblocking(False)
            sockets[index] = sock
            address = (sockaddr[0], port) + tuple(sockaddr[2:])

            if udp:
                try:
                    # Several packets, since UDP is unreliable.
                    for _ in range(3):
                        sock.sendto(_TEST_PAYLOAD, address)
                        time.sleep(0.05)
                except OSError as exc:
                    log.warning("Failed to send test packet to UDP %u: %s", port, exc)
                    continue
            else:
                err = sock.connect_ex(address)
                if err != 0 and err not in _CONNECT_PENDING:
                    log.warning("Failed to start async connect to TCP %u: %d", port, err)
                    continue
            pending |= 1 << index

        with selectors.DefaultSelector() as selector:
            for index in _set_bits(pending):
                events = selectors.EVENT_READ if _is_udp(index) else selectors.EVENT_WRITE
                selector.register(sockets[index], events, index)

            while selector.get_map():
                try:
                    ready = selector.select(TEST_PORT_TIMEOUT_SEC)
                except OSError as exc:
                    log.warning("Polling sockets failed: %s", exc)
                    return TEST_RESULT_INCONCLUSIVE
                if not ready:
                    log.info("Connection timed out after %d seconds", TEST_PORT_TIMEOUT_SEC)
                    break

                for key, _ in ready:
                    index = key.data
                    sock = key.fileobj
                    selector.unregister(sock)
                    port = port_from_port_flag_index(index)
                    if _is_udp(index):
                        try:
                            sock.recvfrom(MTU_TEST_SIZE)
                        except OSError as exc:
                            log.info("UDP port %u test failed: %s", port, exc)
                        else:
                            failing &= ~(1 << index)
                            log.info("UDP port %u test successful", port)
                    else:
                        err = sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
                        if err == 0:
                            failing &= ~(1 << index)
                            log.info("TCP port %u test successful", port)
                        else:
                            log.info("TCP port %u test failed: %d", port, err)
    finally:
        for sock in sockets.values():
            sock.close()

    return failing