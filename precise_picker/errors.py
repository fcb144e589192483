"""Error types for the precise picker.

``ConfigurationError`` is fatal and raised at construction time.
``InputRejected`` is raised by parsers and validators and always recovered
inside :class:`precise_picker.controller.ValuePickerController`.
"""


class ConfigurationError(ValueError):
    """Invalid bounds, step or configuration file contents."""


class InputRejected(ValueError):
    """User or host input that the picker refuses without changing state."""
