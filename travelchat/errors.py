from typing import Any, Dict, List, Optional


class TravelChatError(Exception):
    pass


class ExtractionIncomplete(TravelChatError):
    """
    A required search field is missing. Not a failure: `prompt` is the
    clarifying question to send back to the user.
    """

    def __init__(self, missing: List[str], prompt: str):
        super().__init__(f"Missing {', '.join(missing)}")
        self.missing = missing
        self.prompt = prompt


class ResolutionError(TravelChatError):
    def __init__(self, query: str):
        super().__init__(f"Could not resolve location: {query!r}")
        self.query = query


class ProviderError(TravelChatError):
    pass


class NotInitializedError(ProviderError):
    """Raised before any network call when the provider was never configured."""


class ProviderRequestError(ProviderError):
    def __init__(self, message: str, status_code: Optional[int] = None, detail: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class ProviderBadRequestError(ProviderRequestError):
    pass


class ProviderAuthError(ProviderRequestError):
    pass


class PriceChangedError(ProviderError):
    def __init__(
        self,
        original_price: Optional[float],
        confirmed_price: Optional[float],
        currency: str = "",
        confirmed_offer: Optional[Dict[str, Any]] = None,
    ):
        if original_price is not None and confirmed_price is not None:
            unit = f"{currency} " if currency else ""
            msg = f"Price has changed from {unit}{original_price:.2f} to {unit}{confirmed_price:.2f}"
        else:
            msg = "Price has changed since the offer was quoted"
        super().__init__(msg)
        self.original_price = original_price
        self.confirmed_price = confirmed_price
        self.currency = currency
        self.confirmed_offer = confirmed_offer

    @property
    def difference(self) -> Optional[float]:
        if self.original_price is None or self.confirmed_price is None:
            return None
        return round(self.confirmed_price - self.original_price, 2)


class GenerationError(TravelChatError):
    pass
