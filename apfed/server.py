# apfed/server.py
"""
HTTP responder for locally hosted actors.

Serves what remote servers need to talk to our actors and checks the
signatures on what they deliver.

Endpoints:
    GET  /.well-known/webfinger?resource=acct:user@host - WebFinger JRD
    GET  /users/:name         - Actor document
    POST /users/:name/inbox   - Personal inbox (signature verified)
    POST /inbox               - Shared inbox (signature verified)
    GET  /health              - Liveness check
"""

import json
import logging
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import parse_qs, urlparse

from .actor import LocalActor
from .client import FederationClient
from .headers import HeaderMap

logger = logging.getLogger(__name__)

JRD_JSON = "application/jrd+json"
ACTIVITY_JSON = "application/activity+json"


class InboxServer:
    """
    HTTP server for local actors.

    Usage:
        server = InboxServer(host="127.0.0.1", port=8080)
        server.add_actor(LocalActor.create("alice", "example.com"))
        server.start()  # Blocking

    Args:
        actors: Actors to serve
        host: Host to bind to
        port: Port to bind to (0 picks a free one)
        client: Client used to fetch sender actors during verification
        on_activity: Called with each accepted activity
    """

    def __init__(
        self,
        actors: Optional[List[LocalActor]] = None,
        host: str = "127.0.0.1",
        port: int = 8080,
        client: Optional[FederationClient] = None,
        on_activity: Optional[Callable[[Dict[str, Any]], None]] = None,
    ):
        self.host = host
        self.port = port
        self.client = client or FederationClient()
        self.on_activity = on_activity
        self.actors: Dict[str, LocalActor] = {}
        self.received: List[Dict[str, Any]] = []
        self._lock = threading.Lock()
        self._httpd: Optional[ThreadingHTTPServer] = None
        self._serving = False
        for actor in actors or []:
            self.add_actor(actor)

    def add_actor(self, actor: LocalActor) -> None:
        with self._lock:
            self.actors[actor.username] = actor

    def get_actor(self, username: str) -> Optional[LocalActor]:
        with self._lock:
            return self.actors.get(username)

    def find_by_resource(self, resource: str) -> Optional[LocalActor]:
        """Resolve an acct:user@host WebFinger resource."""
        if not resource.startswith("acct:") or "@" not in resource:
            return None
        username, host = resource[5:].rsplit("@", 1)
        actor = self.get_actor(username)
        if actor and actor.host == host:
            return actor
        return None

    def accept(self, headers: HeaderMap, body: bytes, path: str) -> bool:
        """Verify and, if authentic, record an inbound delivery."""
        if not self.client.verify_request_signature(headers, body, target_path=path):
            return False

        activity = json.loads(body)
        with self._lock:
            self.received.append(activity)
        logger.info(f"Accepted {activity.get('type', 'activity')} {activity.get('id')} at {path}")

        if self.on_activity:
            try:
                self.on_activity(activity)
            except Exception as e:
                logger.warning(f"Activity callback error: {e}")
        return True

    def _create_handler(server_instance):
        """Create request handler with access to server instance."""

        class RequestHandler(BaseHTTPRequestHandler):
            server_ref = server_instance

            def log_message(self, format, *args):
                logger.debug(format % args)

            def _send_json(self, data: Any, status: int = 200, content_type: str = "application/json"):
                body = json.dumps(data).encode()
                self.send_response(status)
                self.send_header("Content-Type", content_type)
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)

            def _send_error(self, message: str, status: int = 400):
                self._send_json({"error": message}, status)

            def do_GET(self):
                parsed = urlparse(self.path)
                path = parsed.path

                if path == "/.well-known/webfinger":
                    resource = parse_qs(parsed.query).get("resource", [""])[0]
                    if not resource:
                        self._send_error("Missing resource")
                        return
                    actor = self.server_ref.find_by_resource(resource)
                    if not actor:
                        self._send_error("Not found", 404)
                        return
                    self._send_json(actor.to_webfinger(), content_type=JRD_JSON)

                elif path.startswith("/users/") and path.count("/") == 2:
                    actor = self.server_ref.get_actor(path[len("/users/"):])
                    if not actor:
                        self._send_error("Not found", 404)
                        return
                    self._send_json(actor.to_activitypub(), content_type=ACTIVITY_JSON)

                elif path == "/health":
                    self._send_json({"status": "ok"})

                else:
                    self._send_error("Not found", 404)

            def do_POST(self):
                path = urlparse(self.path).path

                if path.startswith("/users/") and path.endswith("/inbox"):
                    username = path[len("/users/"):-len("/inbox")]
                    if not self.server_ref.get_actor(username):
                        self._send_error("Not found", 404)
                        return
                elif path != "/inbox":
                    self._send_error("Not found", 404)
                    return

                try:
                    content_length = int(self.headers.get("Content-Length", 0))
                except ValueError:
                    content_length = -1
                if content_length < 0:
                    self._send_error("Invalid Content-Length")
                    return
                body = self.rfile.read(content_length)
                headers = HeaderMap(self.headers.items())

                if self.server_ref.accept(headers, body, path):
                    self._send_json({"status": "accepted"}, 202)
                else:
                    self._send_error("Invalid signature", 401)

        return RequestHandler

    def bind(self) -> ThreadingHTTPServer:
        """Bind the listening socket; port is updated if 0 was requested."""
        if self._httpd is None:
            self._httpd = ThreadingHTTPServer((self.host, self.port), self._create_handler())
            self.port = self._httpd.server_address[1]
        return self._httpd

    def start(self):
        """Start the HTTP server (blocking)."""
        httpd = self.bind()
        self._serving = True
        logger.info(f"Inbox server starting on {self.host}:{self.port}")
        try:
            httpd.serve_forever()
        except KeyboardInterrupt:
            logger.info("Shutting down...")
        finally:
            self._serving = False
            httpd.server_close()

    def start_background(self) -> threading.Thread:
        """Start the server in a background thread."""
        self.bind()
        self._serving = True
        thread = threading.Thread(target=self.start)
        thread.daemon = True
        thread.start()
        return thread

    def shutdown(self):
        """Stop a running server."""
        if self._httpd is not None and self._serving:
            self._httpd.shutdown()

