"""
Session Manager

Owns the table of live client sessions. Each session pairs one protocol
server instance with the outbound queue of its streaming connection.

Session lifecycle:
    CONNECTING --CONNECTED--> ACTIVE --CLOSED--> CLOSED
    CONNECTING --FAILED/CLOSED--> CLOSED

Sessions enter the lookup table only on CONNECTED and leave it on any move
to CLOSED. Ids are never reused; a reconnecting client gets a new session.

License: Mozilla Public License 2.0
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ..errors import InvalidSessionTransition, SessionNotFound

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    CONNECTING = "connecting"
    ACTIVE = "active"
    CLOSED = "closed"


class SessionEvent(str, Enum):
    CONNECTED = "connected"
    FAILED = "failed"
    CLOSED = "closed"


TRANSITIONS = {
    (SessionState.CONNECTING, SessionEvent.CONNECTED): SessionState.ACTIVE,
    (SessionState.CONNECTING, SessionEvent.FAILED): SessionState.CLOSED,
    (SessionState.CONNECTING, SessionEvent.CLOSED): SessionState.CLOSED,
    (SessionState.ACTIVE, SessionEvent.CLOSED): SessionState.CLOSED,
}

# Observers receive (session, event, previous_state)
SessionObserver = Callable[["Session", SessionEvent, SessionState], None]

# Marks the end of a session's outbound stream
END_OF_STREAM = None


@dataclass
class Session:
    """One connected client: its protocol server and outbound message queue"""
    session_id: str
    server: Any
    outgoing: asyncio.Queue = field(default_factory=asyncio.Queue)
    state: SessionState = SessionState.CONNECTING
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    async def send(self, message: Dict[str, Any]):
        """Queue a message for the streaming connection"""
        if self.state is SessionState.CLOSED:
            logger.warning(f"Attempted to queue message to closed session: {self.session_id}")
            return
        await self.outgoing.put(message)

    def end_stream(self):
        self.outgoing.put_nowait(END_OF_STREAM)


class SessionManager:
    """
    Creates, tracks and tears down client sessions.

    Architecture:
    - open_session(): new protocol server + queue, state CONNECTING
    - connect(): handshake, then the session is registered as ACTIVE
    - handle_message(): route a client message to its session, one at a time
    - close_session(): transport closed, session removed and released
    """

    def __init__(self, server_factory: Callable[[], Any]):
        """
        Initialize session manager.

        Args:
            server_factory: Callable returning a new protocol server instance
        """
        self.server_factory = server_factory
        self.sessions: Dict[str, Session] = {}
        self._observers: List[SessionObserver] = []

    def subscribe(self, observer: SessionObserver):
        """Register a callback for session lifecycle events"""
        self._observers.append(observer)

    def open_session(self) -> Session:
        """Create a session in CONNECTING state (not yet routable)"""
        session = Session(session_id=uuid.uuid4().hex, server=self.server_factory())
        logger.debug(f"Session opened: {session.session_id}")
        return session

    async def connect(self, session: Session):
        """
        Complete the session handshake and register the session.

        Raises:
            Exception: Whatever the protocol server raised while connecting;
                the session is closed before the error propagates
        """
        try:
            await session.server.connect(session.send)
        except Exception as e:
            logger.error(f"Failed to start session {session.session_id}: {e}")
            self._dispatch(session, SessionEvent.FAILED)
            session.server.close()
            raise

        self._dispatch(session, SessionEvent.CONNECTED)
        self.sessions[session.session_id] = session
        logger.info(f"Session established: {session.session_id}")

    def get_session(self, session_id: str) -> Session:
        session = self.sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    async def handle_message(self, session_id: str, message: Any) -> Optional[Dict[str, Any]]:
        """
        Deliver a client message to its session's protocol server.

        Messages for the same session are processed strictly one after another.
        A reply, if any, is queued on the session's stream and also returned.

        Raises:
            SessionNotFound: If the session is unknown or already closed
        """
        session = self.get_session(session_id)

        async with session.lock:
            # The session may have closed while this message waited its turn.
            if session.state is SessionState.CLOSED:
                raise SessionNotFound(session_id)

            reply = await session.server.handle_message(message)
            if reply is not None:
                await session.send(reply)

        return reply

    def close_session(self, session_id: str):
        """
        Close a session after its transport went away. Safe to call repeatedly.
        """
        session = self.sessions.pop(session_id, None)
        if session is None:
            return

        self._dispatch(session, SessionEvent.CLOSED)
        session.server.close()
        session.end_stream()
        logger.info(f"Session closed: {session_id}")

    def active_sessions(self) -> List[str]:
        return list(self.sessions.keys())

    def close_all(self):
        for session_id in self.active_sessions():
            self.close_session(session_id)

    def _dispatch(self, session: Session, event: SessionEvent):
        previous = session.state
        target = TRANSITIONS.get((previous, event))
        if target is None:
            raise InvalidSessionTransition(
                f"Session {session.session_id}: cannot apply {event.value} in state {previous.value}"
            )

        session.state = target
        for observer in self._observers:
            try:
                observer(session, event, previous)
            except Exception as e:
                logger.error(f"Session observer failed on {event.value}: {e}", exc_info=True)
