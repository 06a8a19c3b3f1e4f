from __future__ import annotations

from collections.abc import Callable

from loguru import logger

from secure_chat.models import ConnectionStatus, Message, MessageOrigin, MessageStatus, SessionSnapshot

SnapshotListener = Callable[[SessionSnapshot], None]


class SessionStore:
    """Current session id, message log, connection status, busy flag and draft.

    Every public mutator publishes exactly one snapshot to the listeners, so a
    user message and its bot placeholder always become visible together.
    """

    def __init__(self, session_id: str):
        self._session_id = session_id
        self._messages: list[Message] = []
        self._connection_status = ConnectionStatus.DISCONNECTED
        self._busy = False
        self._draft = ""
        self._listeners: list[SnapshotListener] = []

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def draft(self) -> str:
        return self._draft

    @property
    def connection_status(self) -> ConnectionStatus:
        return self._connection_status

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            session_id=self._session_id,
            messages=tuple(self._messages),
            connection_status=self._connection_status,
            busy=self._busy,
            draft=self._draft,
        )

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_draft(self, value: str) -> None:
        self._draft = value
        self._publish()

    def set_connection_status(self, status: ConnectionStatus) -> None:
        self._connection_status = status
        self._publish()

    def begin_exchange(self, user_message: Message, placeholder: Message) -> None:
        """Append the user message and its placeholder, clear the draft, mark busy."""
        self._messages.extend((user_message, placeholder))
        self._draft = ""
        self._connection_status = ConnectionStatus.CONNECTED
        self._busy = True
        self._publish()

    def settle_placeholder(
        self,
        message_id: str,
        content: str,
        status: MessageStatus,
        *,
        origin: MessageOrigin | None = None,
        connection_status: ConnectionStatus | None = None,
    ) -> bool:
        """Settle the pending message ``message_id`` and clear busy.

        Returns False when the message is no longer in the log (the session was
        reset meanwhile); busy is still cleared in that case.
        """
        found = False
        for index, message in enumerate(self._messages):
            if message.id == message_id:
                self._messages[index] = message.settle(content, status, origin)
                found = True
                break
        if connection_status is not None:
            self._connection_status = connection_status
        self._busy = False
        self._publish()
        return found

    def reset(self, session_id: str) -> None:
        self._session_id = session_id
        self._messages.clear()
        self._busy = False
        self._publish()

    def _publish(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as ex:
                logger.warning(f"Session listener failed: {ex}")
