"""Doubles de test pour les stores du registre."""

from clocwise.domain.errors import BackendUnavailable


class FlakyStore:
    """Store primaire simulé: délègue à `inner`, ou lève `BackendUnavailable` si `down`."""

    name = "primary"

    def __init__(self, inner, down=False):
        self.inner = inner
        self.down = down
        self.calls = 0

    def __getattr__(self, attr):
        target = getattr(self.inner, attr)

        def call(*args, **kwargs):
            self.calls += 1
            if self.down:
                raise BackendUnavailable("connection refused")
            return target(*args, **kwargs)

        return call
