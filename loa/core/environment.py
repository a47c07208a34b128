"""Scopes for Loa programs. A scope frame maps names to values and links to its enclosing frame.

There is one global frame per run (or per interactive session) and one new frame per function call, whose parent is
the frame the function was defined in. Blocks of if/while statements run in the frame that contains them.
"""

from loa.lang.error import ExecutionError, Fault


class Environment:

    def __init__(self, parent=None):
        self.parent = parent
        self.bindings = {}

    def __repr__(self):
        content = ", ".join(self.bindings)
        return f"[{content}]" + (f" < {self.parent}" if self.parent is not None else "")

    def __contains__(self, name):
        return self.resolve(name) is not None

    def define(self, name, value):
        """Binds name in this frame, shadowing any binding in enclosing frames."""
        self.bindings[name] = value
        return value

    def resolve(self, name):
        """Returns innermost frame that binds name, or None if no frame in the chain does."""
        frame = self
        while frame is not None:
            if name in frame.bindings:
                return frame
            frame = frame.parent
        return None

    def get(self, name):
        """Looks name up from this frame outwards. Raises ExecutionError if it isn't bound anywhere."""
        frame = self.resolve(name)
        if frame is None:
            raise ExecutionError(Fault.UNDEFINED_VARIABLE, f"undefined variable '{name}'")
        return frame.bindings[name]

    def assign(self, name, value):
        """Rebinds name in the nearest frame that already binds it, or defines it here if none does."""
        frame = self.resolve(name)
        if frame is None:
            frame = self
        return frame.define(name, value)

    def child(self):
        """Returns a new empty frame enclosed by this one."""
        return Environment(self)
