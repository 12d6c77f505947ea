#!/usr/bin/env python3
"""
Sanitizing HTTP Server Using Socket Programming

Small HTTP/1.1 server that serves static files and two dynamic pages:
- Static file serving from the public directory (files and directory listings)
- Literal index page at "/"
- Information page at "/information" rendered from a template with
  HTML-entity and HTML-attribute encoded query parameters
- Per-request timeout guard answering 408 for requests that never complete
- Worker thread pool and keep-alive connection handling
- Logging of requests, security violations and timeouts

Python Version: 3.6+
"""

import socket
import threading
import queue
import os
import re
import stat
import sys
import json
import logging
import signal
import time
import datetime
from urllib.parse import parse_qsl
from typing import Callable, Dict, List, Optional, Tuple


DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8000
DEFAULT_MAX_THREADS = 10
REQUEST_TIMEOUT = 30           # seconds before a request is answered with 408
KEEP_ALIVE_TIMEOUT = 30        # idle seconds before a connection is dropped
MAX_REQUESTS_PER_CONNECTION = 100
MAX_HEADER_BYTES = 8192
RECV_BUFFER_SIZE = 8192
STREAM_CHUNK_SIZE = 64 * 1024

INFORMATION_TEMPLATE = "information.html"
INDEX_PAGE = "index.html"

# ECMAScript WhiteSpace and LineTerminator: includes U+FEFF, excludes U+001C-U+001F and U+0085
TRIM_CHARACTERS = (
    "\t\n\v\f\r \u00a0\u1680"
    "\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a"
    "\u2028\u2029\u202f\u205f\u3000\ufeff"
)

TOKEN_PATTERN = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")

STATUS_MESSAGES = {
    200: "OK",
    400: "Bad Request",
    404: "Not Found",
    405: "Method Not Allowed",
    408: "Request Timeout",
    500: "Internal Server Error",
}

CONTENT_TYPES = {
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.png': 'image/png',
    '.css': 'text/css',
    '.js': 'text/javascript',
}


class HTTPError(Exception):
    """Request failure that maps onto a plain-text HTTP response."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ClientInputError(HTTPError):
    """Rejected client input (400) or a disallowed method (405)."""


class NotFoundError(HTTPError):
    def __init__(self, message: str = "File not found"):
        super().__init__(404, message)


class ServerIOError(HTTPError):
    def __init__(self, message: str = "Internal Server Error"):
        super().__init__(500, message)


class RequestTimeoutError(HTTPError):
    def __init__(self, message: str = "Request Timeout"):
        super().__init__(408, message)


# ---------------------------------------------------------------------------
# HTML sanitizing
# ---------------------------------------------------------------------------

def encode_html_entities(unsafe: str) -> str:
    """
    Replace the HTML special characters with their entities.

    "&" is replaced first so entities inserted afterwards are not encoded twice.
    """
    return (unsafe
            .replace('&', '&amp;')
            .replace('<', '&lt;')
            .replace('>', '&gt;')
            .replace('"', '&quot;')
            .replace("'", '&#x27;'))


def encode_html_attributes(unsafe: str) -> str:
    """
    Encode every character outside [0-9A-Za-z] as &#xHH;.

    Works on code points, so a character outside the BMP becomes a single
    entity rather than two surrogate entities.
    """
    encoded = []
    for char in unsafe:
        code_point = ord(char)
        if (0x30 <= code_point <= 0x39 or
                0x41 <= code_point <= 0x5A or
                0x61 <= code_point <= 0x7A):
            encoded.append(char)
        else:
            encoded.append(f"&#x{code_point:X};")
    return ''.join(encoded)


def sanitize_query(query: Dict[str, str]) -> Dict[str, str]:
    """Entity-encode then attribute-encode every value. Keys are left as given."""
    return {key: encode_html_attributes(encode_html_entities(value))
            for key, value in query.items()}


def has_blank_parameters(query: Dict[str, str]) -> bool:
    """True if any key or value is empty once TRIM_CHARACTERS are stripped."""
    for key, value in query.items():
        if not key.strip(TRIM_CHARACTERS) or not value.strip(TRIM_CHARACTERS):
            return True
    return False


def render_template(template: str, replacements: List[Tuple[str, str]]) -> str:
    """
    Substitute placeholders in order, first occurrence of each only.

    Later occurrences of a placeholder, and placeholders the template does
    not contain, are left untouched.
    """
    for placeholder, value in replacements:
        template = template.replace(placeholder, value, 1)
    return template


def content_type_for(file_path: str) -> str:
    """Content type by extension; anything unknown is served as text/html."""
    _, extension = os.path.splitext(file_path)
    return CONTENT_TYPES.get(extension, 'text/html')


# ---------------------------------------------------------------------------
# Routing
# ---------------------------------------------------------------------------

ROUTE_TABLE = [
    (lambda path: path == '/', 'root'),
    (lambda path: path == '/information', 'information'),
    (lambda path: True, 'static'),
]


def classify_route(path: str) -> str:
    """Return the name of the first route whose predicate matches the path."""
    for predicate, route in ROUTE_TABLE:
        if predicate(path):
            return route
    return 'static'


# ---------------------------------------------------------------------------
# Timeout guard
# ---------------------------------------------------------------------------

class ResponseChannel:
    """One-shot gate: only the first caller of claim() may write a response."""

    def __init__(self):
        self._lock = threading.Lock()
        self._claimed = False

    def claim(self) -> bool:
        with self._lock:
            if self._claimed:
                return False
            self._claimed = True
            return True


class RequestTimer:
    """
    Per-request deadline raced against the normal response.

    The timer starts armed. If it expires and wins the response channel it
    moves to fired and runs on_timeout; if the normal response completes
    first, cancel() moves it to cancelled. Both states are terminal.
    """

    ARMED = 'armed'
    FIRED = 'fired'
    CANCELLED = 'cancelled'

    def __init__(self, timeout: float, channel: ResponseChannel, on_timeout: Callable[[], None]):
        """
        Args:
            timeout: Seconds before the timeout response is written
            channel: Response channel shared with the request handler
            on_timeout: Callback writing the timeout response
        """
        self.timeout = timeout
        self.channel = channel
        self.state = self.ARMED
        self._on_timeout = on_timeout
        self._lock = threading.Lock()
        self._timer = threading.Timer(timeout, self._fire)
        self._timer.daemon = True

    def start(self):
        self._timer.start()

    def _fire(self):
        with self._lock:
            if self.state != self.ARMED:
                return
            # A response already being written will cancel us when it is flushed
            if not self.channel.claim():
                return
            self.state = self.FIRED
        self._on_timeout()

    def cancel(self) -> bool:
        """Cancel the deadline. Returns False if it already fired or was cancelled."""
        with self._lock:
            if self.state != self.ARMED:
                return False
            self.state = self.CANCELLED
        self._timer.cancel()
        return True

    def wait(self, timeout: Optional[float] = None):
        """Block until a running timeout callback has finished writing."""
        if self._timer.is_alive():
            self._timer.join(timeout)


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------

class HTTPServer:
    """
    Multi-threaded HTTP server with a fixed worker pool.

    The main thread accepts connections and queues them; each worker serves
    one keep-alive connection at a time. Every request is guarded by a
    RequestTimer so that it is answered exactly once.
    """

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT,
                 max_threads: int = DEFAULT_MAX_THREADS,
                 public_dir: str = "public", templates_dir: str = "templates",
                 request_timeout: float = REQUEST_TIMEOUT,
                 confine_to_root: bool = True, log_file: Optional[str] = None):
        """
        Initialize the HTTP server with configuration parameters.

        Args:
            host: Server host address (default: 0.0.0.0)
            port: Server port number, 0 for an ephemeral port (default: 8000)
            max_threads: Number of worker threads (default: 10)
            public_dir: Root directory for static files and the index page
            templates_dir: Directory holding information.html
            request_timeout: Seconds before a request is answered with 408
            confine_to_root: Refuse static paths resolving outside public_dir
            log_file: Optional file receiving a copy of the log
        """
        self.host = host
        self.port = port
        self.max_threads = max_threads
        self.public_dir = os.path.abspath(public_dir)
        self.templates_dir = os.path.abspath(templates_dir)
        self.request_timeout = request_timeout
        self.confine_to_root = confine_to_root
        self.server_socket = None
        self.running = False
        self.ready = threading.Event()
        self.thread_pool = []
        self.connection_queue = queue.Queue()
        self.stats_lock = threading.Lock()
        self.shutdown_lock = threading.Lock()

        # Statistics tracking
        self.total_requests = 0
        self.total_connections = 0
        self.total_timeouts = 0

        self._setup_logging(log_file)

        self.logger.info(f"HTTP Server initialized: {host}:{port}, max_threads={max_threads}, "
                         f"public_dir={self.public_dir}")

    def _setup_logging(self, log_file: Optional[str]):
        """Configure console (and optionally file) logging once per process."""
        log_format = "%(asctime)s [%(levelname)s] [%(threadName)s] %(message)s"
        date_format = "%Y-%m-%d %H:%M:%S"

        self.logger = logging.getLogger("httpd")
        self.logger.setLevel(logging.INFO)
        # Prevent duplicate logs
        self.logger.propagate = False

        if not self.logger.handlers:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(logging.INFO)
            console_handler.setFormatter(logging.Formatter(log_format, date_format))
            self.logger.addHandler(console_handler)

        if log_file:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(log_file, mode='a')
            file_handler.setLevel(logging.INFO)
            file_handler.setFormatter(logging.Formatter(log_format, date_format))
            self.logger.addHandler(file_handler)

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals gracefully."""
        self.logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        self.running = False

    def start(self):
        """Start the worker pool and serve until stop() is called."""
        try:
            server_socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            self.server_socket = server_socket
            server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            server_socket.bind((self.host, self.port))
            server_socket.listen(50)
            # Wake up periodically so stop() is noticed
            server_socket.settimeout(1.0)
            self.port = server_socket.getsockname()[1]

            self.running = True
            self.logger.info(f"Server started on {self.host}:{self.port}")

            for i in range(self.max_threads):
                thread = threading.Thread(target=self._worker_thread, name=f"Worker-{i+1}")
                thread.daemon = True
                thread.start()
                self.thread_pool.append(thread)

            self.ready.set()

            # Main accept loop
            while self.running:
                try:
                    client_socket, client_address = server_socket.accept()
                except socket.timeout:
                    continue
                except OSError as e:
                    if self.running:
                        self.logger.error(f"Error accepting connection: {e}")
                    break

                with self.stats_lock:
                    self.total_connections += 1
                self.connection_queue.put((client_socket, client_address))

        except Exception as e:
            self.logger.error(f"Failed to start server: {e}")
            raise
        finally:
            self.stop()

    def _worker_thread(self):
        """Worker thread that processes connections from the queue."""
        thread_name = threading.current_thread().name

        while self.running:
            try:
                client_socket, client_address = self.connection_queue.get(timeout=1.0)
            except queue.Empty:
                continue

            try:
                self._handle_connection(client_socket, client_address, thread_name)
            except Exception as e:
                self.logger.error(f"[{thread_name}] Error in worker thread: {e}")
            finally:
                self.connection_queue.task_done()

    def _handle_connection(self, client_socket: socket.socket, client_address: Tuple[str, int], thread_name: str):
        """
        Serve requests on one connection until it is closed or times out.

        Args:
            client_socket: Client socket connection
            client_address: Client address tuple (host, port)
            thread_name: Name of the processing thread
        """
        connection_id = f"{client_address[0]}:{client_address[1]}"
        request_count = 0
        buffer = b''

        try:
            client_socket.settimeout(KEEP_ALIVE_TIMEOUT)

            while request_count < MAX_REQUESTS_PER_CONNECTION and self.running:
                try:
                    request, buffer = self._read_request(client_socket, buffer)
                except ClientInputError as e:
                    self.logger.warning(f"[{thread_name}] Invalid request from {connection_id}: {e.message}")
                    self._send_response(client_socket, self._create_error_response(e), close=True)
                    break
                except socket.timeout:
                    self.logger.info(f"[{thread_name}] Connection timeout for {connection_id}")
                    break

                if request is None:
                    break

                request_count += 1
                with self.stats_lock:
                    self.total_requests += 1

                self.logger.info(f"[{thread_name}] {connection_id} \"{request['method']} "
                                 f"{request['target']} {request['version']}\"")

                keep_alive = self._wants_keep_alive(request) and request_count < MAX_REQUESTS_PER_CONNECTION
                if not self._serve_request(client_socket, request, keep_alive, connection_id, thread_name):
                    break
                if not keep_alive:
                    break

        except OSError as e:
            self.logger.error(f"[{thread_name}] Error handling connection {connection_id}: {e}")
        finally:
            try:
                client_socket.close()
            except OSError:
                pass

    def _serve_request(self, client_socket: socket.socket, request: Dict, keep_alive: bool,
                       connection_id: str, thread_name: str) -> bool:
        """
        Produce and write the response for one request under its timeout guard.

        Returns:
            False when the connection must be closed because the timeout won
        """
        head_only = request['method'] == 'HEAD'
        channel = ResponseChannel()
        timer = RequestTimer(
            self.request_timeout, channel,
            lambda: self._send_timeout_response(client_socket, head_only, connection_id, thread_name))
        timer.start()

        try:
            response = self._process_request(request, thread_name)
            if not channel.claim():
                self._discard_response(response)
                timer.wait()
                self.logger.warning(f"[{thread_name}] Response for {connection_id} discarded after timeout")
                return False
            self._send_response(client_socket, response, close=not keep_alive, head_only=head_only)
        finally:
            # Only a flushed (or failed) write ends the race
            timer.cancel()
        return True

    def _send_timeout_response(self, client_socket: socket.socket, head_only: bool,
                               connection_id: str, thread_name: str):
        with self.stats_lock:
            self.total_timeouts += 1
        self.logger.warning(f"[{thread_name}] Request from {connection_id} exceeded "
                            f"{self.request_timeout}s, sending 408")
        try:
            response = self._create_error_response(RequestTimeoutError())
            self._send_response(client_socket, response, close=True, head_only=head_only)
            client_socket.shutdown(socket.SHUT_WR)
        except OSError as e:
            self.logger.error(f"Error sending timeout response to {connection_id}: {e}")

    def _read_request(self, client_socket: socket.socket, buffer: bytes) -> Tuple[Optional[Dict], bytes]:
        """
        Read one header block within KEEP_ALIVE_TIMEOUT.

        The body is never waited for: no handler uses it. A body that has
        already arrived in full is consumed; otherwise the request is marked
        'body_incomplete' and the connection closes after the response.

        Args:
            client_socket: Client socket connection
            buffer: Bytes already received on this connection

        Returns:
            Parsed request (None when the client closed) and leftover bytes
        """
        deadline = time.monotonic() + KEEP_ALIVE_TIMEOUT
        while b'\r\n\r\n' not in buffer:
            if len(buffer) > MAX_HEADER_BYTES:
                raise ClientInputError(400, "Bad Request")
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise socket.timeout("header block not received in time")
            client_socket.settimeout(remaining)
            chunk = client_socket.recv(RECV_BUFFER_SIZE)
            if not chunk:
                return None, b''
            buffer += chunk
        client_socket.settimeout(KEEP_ALIVE_TIMEOUT)

        head, _, rest = buffer.partition(b'\r\n\r\n')
        if len(head) > MAX_HEADER_BYTES:
            raise ClientInputError(400, "Bad Request")

        try:
            request = self._parse_http_request(head.decode('utf-8', 'surrogateescape'))
        except ValueError:
            raise ClientInputError(400, "Bad Request")
        if request is None:
            raise ClientInputError(400, "Bad Request")

        try:
            content_length = int(request['headers'].get('content-length', '0'))
        except ValueError:
            raise ClientInputError(400, "Bad Request")
        if content_length < 0:
            raise ClientInputError(400, "Bad Request")

        if len(rest) < content_length:
            request['body_incomplete'] = True
            return request, b''

        request['body'] = rest[:content_length]
        return request, rest[content_length:]

    def _parse_http_request(self, request_data: str) -> Optional[Dict]:
        """
        Parse the request line and headers into structured format.

        Args:
            request_data: Header block without the terminating blank line

        Returns:
            Parsed request dictionary or None if invalid
        """
        lines = request_data.split('\r\n')

        request_line = lines[0].split(' ')
        if len(request_line) != 3:
            return None

        method, target, version = request_line
        if not TOKEN_PATTERN.match(method) or not target or not version.startswith('HTTP/'):
            return None

        headers = {}
        for line in lines[1:]:
            if ':' not in line:
                return None
            key, value = line.split(':', 1)
            headers[key.strip().lower()] = value.strip()

        # Origin-form split: "//x/y" stays a path, it is not a network location
        path, _, query_string = target.partition('#')[0].partition('?')
        # Repeated keys keep their last value
        query = dict(parse_qsl(query_string, keep_blank_values=True))

        return {
            'method': method,
            'target': target,
            'path': path,
            'query': query,
            'version': version,
            'headers': headers,
            'body': b''
        }

    def _wants_keep_alive(self, request: Dict) -> bool:
        headers = request['headers']
        connection = headers.get('connection', '').lower()
        if connection == 'close' or 'transfer-encoding' in headers or request.get('body_incomplete'):
            return False
        if request['version'] == 'HTTP/1.0':
            return connection == 'keep-alive'
        return True

    def _process_request(self, request: Dict, thread_name: str) -> Dict:
        """
        Route the request and convert handler failures into responses.

        Args:
            request: Parsed HTTP request dictionary
            thread_name: Processing thread name

        Returns:
            Response dictionary
        """
        try:
            return self._dispatch(request)
        except HTTPError as e:
            if e.status_code >= 500:
                self.logger.error(f"[{thread_name}] {request['method']} {request['target']} -> "
                                  f"{e.status_code}: {e.__cause__ or e.message}")
            else:
                self.logger.info(f"[{thread_name}] {request['method']} {request['target']} -> "
                                 f"{e.status_code} {e.message}")
            return self._create_error_response(e)
        except Exception as e:
            self.logger.exception(f"[{thread_name}] Unexpected error processing {request['target']}: {e}")
            return self._create_error_response(ServerIOError())

    def _dispatch(self, request: Dict) -> Dict:
        route = classify_route(request['path'])
        handler = getattr(self, f"_handle_{route}")
        return handler(request)

    def _handle_root(self, request: Dict) -> Dict:
        """Serve public/index.html verbatim, whatever the method."""
        page_path = os.path.join(self.public_dir, INDEX_PAGE)
        try:
            with open(page_path, 'rb') as f:
                content = f.read()
        except OSError as e:
            raise ServerIOError() from e
        return self._create_response(200, content, 'text/html')

    def _handle_information(self, request: Dict) -> Dict:
        """
        Render the information template with the sanitized query.

        Args:
            request: Parsed HTTP request dictionary

        Returns:
            Response dictionary
        """
        if request['method'] != 'GET':
            raise ClientInputError(405, "Method Not Allowed")

        query = request['query']
        if has_blank_parameters(query):
            raise ClientInputError(400, "Bad Request: Invalid query parameters")

        template_path = os.path.join(self.templates_dir, INFORMATION_TEMPLATE)
        try:
            with open(template_path, 'r', encoding='utf-8') as f:
                template = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise ServerIOError() from e

        sanitized = sanitize_query(query)
        document = render_template(template, [
            ('{{method}}', 'GET'),
            ('{{path}}', '/information'),
            ('{{query}}', json.dumps(sanitized, separators=(',', ':'), ensure_ascii=False)),
        ])
        return self._create_response(200, document, 'text/html')

    def _resolve_static_path(self, target: str) -> str:
        """
        Join the raw request target onto the public root.

        Raises:
            NotFoundError: when confinement is on and the path escapes the root
        """
        file_path = os.path.normpath(os.path.join(self.public_dir, target.lstrip('/')))
        if self.confine_to_root and os.path.commonpath([file_path, self.public_dir]) != self.public_dir:
            self.logger.warning(f"Security violation - path escapes public root: {target}")
            raise NotFoundError()
        return file_path

    def _handle_static(self, request: Dict) -> Dict:
        """
        Serve a file, a directory's index.html, or a directory listing.

        Args:
            request: Parsed HTTP request dictionary

        Returns:
            Response dictionary
        """
        file_path = self._resolve_static_path(request['target'])

        try:
            stats = os.stat(file_path)
        except (OSError, ValueError):
            raise NotFoundError()

        if stat.S_ISDIR(stats.st_mode):
            index_path = os.path.join(file_path, INDEX_PAGE)
            if os.path.exists(index_path):
                return self._serve_file(index_path)
            return self._serve_directory_listing(file_path)

        return self._serve_file(file_path)

    def _serve_file(self, file_path: str) -> Dict:
        """
        Open a file for streaming with a content type chosen by extension.

        Args:
            file_path: Path to the file

        Returns:
            Response dictionary whose body is the open file
        """
        try:
            stream = open(file_path, 'rb')
        except OSError as e:
            raise ServerIOError() from e

        try:
            file_size = os.fstat(stream.fileno()).st_size
        except OSError as e:
            stream.close()
            raise ServerIOError() from e

        return {
            'status_code': 200,
            'status_text': STATUS_MESSAGES[200],
            'headers': {
                'Content-Type': content_type_for(file_path),
                'Content-Length': str(file_size),
            },
            'body': stream,
            'is_stream': True
        }

    def _serve_directory_listing(self, dir_path: str) -> Dict:
        try:
            entries = os.listdir(dir_path)
        except OSError as e:
            raise ServerIOError() from e
        body = 'Directory Listing:\n' + '\n'.join(entries)
        return self._create_response(200, body, 'text/plain')

    def _create_response(self, status_code: int, body, content_type: str) -> Dict:
        """
        Build a response dictionary around an in-memory body.

        Args:
            status_code: HTTP status code
            body: Response body as str or bytes
            content_type: Value of the Content-Type header

        Returns:
            Response dictionary
        """
        if isinstance(body, str):
            body = body.encode('utf-8', 'surrogateescape')

        return {
            'status_code': status_code,
            'status_text': STATUS_MESSAGES.get(status_code, "Unknown"),
            'headers': {
                'Content-Type': content_type,
                'Content-Length': str(len(body)),
            },
            'body': body
        }

    def _create_error_response(self, error: HTTPError) -> Dict:
        """Plain-text response carrying the error's message."""
        return self._create_response(error.status_code, error.message, 'text/plain')

    def _discard_response(self, response: Dict):
        if response.get('is_stream', False):
            response['body'].close()

    def _send_response(self, client_socket: socket.socket, response: Dict,
                       close: bool = False, head_only: bool = False):
        """
        Write an HTTP response to the client.

        Args:
            client_socket: Client socket connection
            response: Response dictionary
            close: Announce that the connection closes after this response
            head_only: Omit the body (HEAD requests)
        """
        body = response.get('body', b'')
        try:
            status_line = f"HTTP/1.1 {response['status_code']} {response['status_text']}\r\n"
            date_header = f"Date: {datetime.datetime.now(datetime.timezone.utc).strftime('%a, %d %b %Y %H:%M:%S GMT')}\r\n"

            headers = ""
            for key, value in response['headers'].items():
                headers += f"{key}: {value}\r\n"
            headers += f"Connection: {'close' if close else 'keep-alive'}\r\n"

            client_socket.sendall((status_line + date_header + headers + "\r\n").encode('latin-1'))

            if head_only:
                return

            if response.get('is_stream', False):
                while True:
                    chunk = body.read(STREAM_CHUNK_SIZE)
                    if not chunk:
                        break
                    client_socket.sendall(chunk)
            elif body:
                client_socket.sendall(body)
        finally:
            if response.get('is_stream', False):
                body.close()

    def stop(self):
        """Stop the HTTP server gracefully."""
        with self.shutdown_lock:
            server_socket = self.server_socket
            self.server_socket = None
            self.running = False
        if server_socket is None:
            return

        self.logger.info("Stopping HTTP server...")

        try:
            server_socket.close()
        except OSError:
            pass

        # Close connections that never reached a worker
        while True:
            try:
                client_socket, _ = self.connection_queue.get_nowait()
            except queue.Empty:
                break
            client_socket.close()
            self.connection_queue.task_done()

        current = threading.current_thread()
        for thread in self.thread_pool:
            if thread is not current:
                thread.join(timeout=2)
        self.thread_pool = []

        with self.stats_lock:
            self.logger.info(f"Server stopped. Total requests: {self.total_requests}, "
                             f"Total connections: {self.total_connections}, "
                             f"Timeouts: {self.total_timeouts}")


def main():
    """
    Main entry point for the HTTP server.
    Usage: httpd [port] [host] [max_threads]
    """
    host = DEFAULT_HOST
    port = DEFAULT_PORT
    max_threads = DEFAULT_MAX_THREADS

    if len(sys.argv) >= 2:
        try:
            port = int(sys.argv[1])
        except ValueError:
            print("Error: Port must be an integer")
            sys.exit(1)

    if len(sys.argv) >= 3:
        host = sys.argv[2]

    if len(sys.argv) >= 4:
        try:
            max_threads = int(sys.argv[3])
        except ValueError:
            print("Error: Max threads must be an integer")
            sys.exit(1)

    if not (1 <= port <= 65535):
        print("Error: Port must be between 1 and 65535")
        sys.exit(1)

    if max_threads < 1:
        print("Error: Max threads must be at least 1")
        sys.exit(1)

    try:
        server = HTTPServer(host, port, max_threads)
        signal.signal(signal.SIGINT, server._signal_handler)
        signal.signal(signal.SIGTERM, server._signal_handler)
        print(f"Starting HTTP server on {host}:{port} with {max_threads} threads...")
        print("Press Ctrl+C to stop the server")
        server.start()
    except Exception as e:
        print(f"Error starting server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()


"""
===============================================================================
README - Sanitizing HTTP Server
===============================================================================

## Directory Setup
```
project/
├── httpd.py
├── public/
│   ├── index.html          # Served verbatim at "/"
│   └── ...                 # Static files, served by path
└── templates/
    └── information.html    # Uses {{method}}, {{path}} and {{query}}
```

## Running the Server
```bash
python httpd.py                  # 0.0.0.0:8000, 10 threads
python httpd.py 8080             # custom port
python httpd.py 8080 127.0.0.1 4 # custom port, host and thread count
```

## Routes
- `/` (any method): public/index.html
- `/information?k=v` (GET only): template with sanitized query, 400 when a
  key or value is blank, 405 for other methods
- anything else: static file, index.html of a directory, or a plain-text
  directory listing; 404 "File not found" when missing

## Sanitizing
Query values are entity encoded (& < > " ') and then attribute encoded
(every character outside 0-9, A-Z, a-z becomes &#xHH;) before they are
placed in the page.

## Request Timeout
Each request is raced against a 30 second timer. If the timer wins, the
client receives a single "408 Request Timeout" and the connection closes;
the late response is discarded.

## Known Limitations
- Static paths are joined onto public/ after normalization; requests that
  resolve outside public/ are refused unless confine_to_root=False
- No limit on the connection queue, no rate limiting, no TLS
"""
