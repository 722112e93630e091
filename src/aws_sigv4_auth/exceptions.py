class AWSSDKWarning(UserWarning): ...


class BaseAWSSDKException(Exception):
    """Top-level exception to capture SDK-related errors."""

    ...


class MissingExpectedParameterException(BaseAWSSDKException, ValueError):
    """Some operations require specific signing properties to be present."""

    ...


class AuthorizationError(BaseAWSSDKException):
    """A request or URL could not be signed."""

    ...


class InvalidHeaderValueError(AuthorizationError, ValueError):
    """A computed value cannot be carried in an HTTP header."""

    def __init__(self, name: str, value: str):
        super().__init__(f"Invalid header value for {name!r}: {value!r}")
        self.name = name


class InvalidURLError(AuthorizationError, ValueError):
    """The signing target is not a well-formed URL."""

    ...


class NoHostError(AuthorizationError):
    """The request URI has no authority to sign as the host header."""

    def __init__(self) -> None:
        super().__init__("No host in URL")


class BodyReadError(AuthorizationError):
    """The request body raised while buffering a chunk for digesting."""

    ...


class BodyExhaustedError(AuthorizationError):
    """The body declared a nonzero length but produced no chunk."""

    def __init__(self) -> None:
        super().__init__("Body declared a nonzero length but produced no data")


class MetadataServiceError(BaseAWSSDKException, OSError):
    """The instance-metadata service returned an unexpected response."""

    ...
