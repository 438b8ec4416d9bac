# error kinds shared by the gateway, the stream controller and the api layer
# every GatewayError ends the current generation and is reported to the session as one error event


class GatewayError(Exception):
    pass


class ConfigMissing(GatewayError):
    def __init__(self, message: str = "AI provider is not configured") -> None:
        super().__init__(message)


class CredentialMissing(GatewayError):
    def __init__(self, provider: str) -> None:
        super().__init__(f"No API key configured for provider: {provider}")
        self.provider = provider


class UnsupportedProvider(GatewayError):
    def __init__(self, provider: str) -> None:
        super().__init__(f"Unsupported AI provider: {provider}")
        self.provider = provider


class UnknownAction(GatewayError):
    def __init__(self, action: str) -> None:
        super().__init__(f"Unsupported action: {action}")
        self.action = action


# faults coming from the upstream provider, as opposed to caller/config errors
class ProviderError(GatewayError):
    pass


class UpstreamHTTPError(ProviderError):
    def __init__(self, provider: str, status_code: int, reason: str, body: str) -> None:
        message = f"{provider} API request failed: {status_code} {reason}".rstrip()
        if body:
            message = f"{message} - {body}"
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.body = body


class TransportError(ProviderError):
    pass


class InvalidMessage(GatewayError):
    pass
