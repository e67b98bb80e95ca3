"""User-facing messages produced while handling a request."""

from dataclasses import dataclass, field


@dataclass
class Message:
    type: str  # "status" or "error"
    text: str


@dataclass
class Messenger:
    """Collects messages for the customer or merchant; the API returns them."""

    messages: list[Message] = field(default_factory=list)

    def add_status(self, text: str) -> None:
        self.messages.append(Message("status", text))

    def add_error(self, text: str) -> None:
        self.messages.append(Message("error", text))

    def texts(self, type: str | None = None) -> list[str]:
        return [m.text for m in self.messages if type is None or m.type == type]
