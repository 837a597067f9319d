from textual.message import Message


class StateChanged(Message):
    """Posted whenever the shared news state notifies its observers."""
