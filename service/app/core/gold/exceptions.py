class GoldPriceError(Exception):
    """Upstream gold price feed failed or returned an unusable body."""

    def __init__(self, message: str, currency: str | None = None, status_code: int | None = None):
        self.currency = currency
        self.status_code = status_code
        super().__init__(message)
