"""Exception hierarchy for zkbeacon."""


class ConfigurationError(Exception):
    """A configuration value could not be accepted. Fatal to startup."""


class RegistrationError(Exception):
    """Base class for failures of the ephemeral node registration."""


class MissingConfiguration(RegistrationError):
    """One or more of address, path and value were not configured."""

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__("No zookeeper " + ", ".join(self.missing) + " was given")


class SessionOpenFailed(RegistrationError):
    """The coordination service session could not be established."""


class NodeCreateFailed(RegistrationError):
    """The session was open but the ephemeral node could not be created."""
