import logging
import socket
from typing import Optional

from .config import Config
from .encoder import ResponseEncoder
from .errors import HeaderTooLarge, IOFailure, RequestError
from .handler import FileHandler
from .models import Method, Request, Response
from .parser import parse_request

logger = logging.getLogger(__name__)


def _head_end(buf: bytearray) -> Optional[int]:
    ends = []
    crlf = buf.find(b"\r\n\r\n")
    if crlf != -1:
        ends.append(crlf + 4)
    lf = buf.find(b"\n\n")
    if lf != -1:
        ends.append(lf + 2)
    return min(ends) if ends else None


def _peername(conn: socket.socket) -> str:
    try:
        host, port = conn.getpeername()[:2]
    except (OSError, ValueError, TypeError):
        return "unknown"
    return f"{host}:{port}"


class Engine:
    def handle_connection(self, conn: socket.socket) -> None:
        try:
            self.process(conn)
        finally:
            try:
                conn.close()
            except OSError:
                pass

    def process(self, conn: socket.socket) -> None:
        raise NotImplementedError


class HTTPEngine(Engine):
    """One request, one response, then the connection is closed."""

    def __init__(self, config: Config, request_handler: FileHandler,
                 encoder: Optional[ResponseEncoder] = None) -> None:
        self.config = config
        self.request_handler = request_handler
        if encoder is None:
            encoder = request_handler.encoder
        self.encoder = encoder

    def process(self, conn: socket.socket) -> None:
        peer = _peername(conn)
        try:
            raw = self._read_headers(conn)
        except (socket.timeout, TimeoutError):
            logger.warning("Timed out waiting for a request from %s", peer)
            return
        except HeaderTooLarge as e:
            logger.warning("Request head from %s too large", peer)
            return self._send(conn, peer, self.encoder.error(e.status))
        except OSError as e:
            logger.warning("Could not read from %s: %s", peer, e)
            return

        if raw is None:
            logger.debug("%s closed the connection before sending a request", peer)
            return

        try:
            req = parse_request(raw)
        except RequestError as e:
            logger.warning("Bad request from %s: %s", peer, e)
            return self._send(conn, peer, self.encoder.error(e.status))

        try:
            resp = self._dispatch(req)
        except IOFailure:
            resp = self.encoder.error(500, req)
        except Exception:
            logger.exception("Unexpected error handling %s %s", req.token, req.path)
            resp = self.encoder.error(500, req)

        self._send(conn, peer, resp, req)

    def _dispatch(self, req: Request) -> Response:
        if req.method is Method.UNSUPPORTED:
            return self.encoder.error(405, req)
        return self.request_handler.handle(req)

    def _read_headers(self, conn: socket.socket) -> Optional[bytes]:
        buf = bytearray()
        while True:
            end = _head_end(buf)
            if end is not None:
                if end > self.config.max_header_bytes:
                    raise HeaderTooLarge()
                return bytes(buf[:end])
            if len(buf) > self.config.max_header_bytes:
                raise HeaderTooLarge()
            try:
                chunk = conn.recv(self.config.chunk_size)
            except (socket.timeout, TimeoutError):
                # the client stopped mid-head; a full request line is enough
                if b"\n" in buf:
                    return bytes(buf)
                raise
            if chunk == b"":
                return bytes(buf) if buf else None
            buf.extend(chunk)

    def _send(self, conn: socket.socket, peer: str, resp: Response,
              req: Optional[Request] = None) -> None:
        request_line = f"{req.token} {req.path} {req.version}" if req is not None else "-"
        logger.info('%s "%s" %d %s', peer, request_line, resp.status,
                    resp.headers.get("Content-Length", "-"))
        try:
            conn.sendall(resp.head())
            if resp.head_only:
                return
            # the socket timeout bounds each sendall, so slice the body
            body = memoryview(resp.body)
            step = self.config.chunk_size
            for start in range(0, len(body), step):
                conn.sendall(body[start:start + step])
        except OSError as e:
            logger.warning("Could not send a response to %s: %s", peer, e)
