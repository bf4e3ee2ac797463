"""
HTTP transport for the seat view
"""

from typing import AsyncIterator, List, Optional
import logging

import httpx
from pydantic import ValidationError as PydanticValidationError

from cinema_seats.schemas.booking import BookingResponse, SeatBookingItem
from cinema_seats.schemas.seat import SeatChangeEvent, SeatResponse

logger = logging.getLogger(__name__)


class BookingRequestError(Exception):
    """The booking invocation failed; ``message`` is safe to show to the user"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"

    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    if isinstance(error, str):
        return error
    return f"HTTP {response.status_code}"


class SeatApiClient:
    """Reads seats, books seats and follows the change feed over HTTP"""

    def __init__(
        self,
        base_url: str,
        api_prefix: str = "/api/v1",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.api_prefix = api_prefix.rstrip("/")
        self.timeout = timeout
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def fetch_seats(self) -> List[SeatResponse]:
        """All seats ordered by row then seat number; raises httpx.HTTPError on failure"""
        response = await self.client.get(f"{self.api_prefix}/seats/")
        response.raise_for_status()
        return [SeatResponse.model_validate(item) for item in response.json()]

    async def book_seats(self, seats: List[SeatBookingItem]) -> BookingResponse:
        body = {"seats": [seat.model_dump(by_alias=True) for seat in seats]}
        try:
            response = await self.client.post(f"{self.api_prefix}/bookings/book-seats", json=body)
        except httpx.HTTPError as e:
            raise BookingRequestError(str(e) or type(e).__name__) from e

        if response.is_error:
            raise BookingRequestError(_error_message(response), status_code=response.status_code)

        try:
            return BookingResponse.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            raise BookingRequestError(f"Unexpected booking response: {e}") from e

    async def stream_changes(self) -> AsyncIterator[SeatChangeEvent]:
        """
        Follow the Server-Sent Events change feed. Ends when the server
        closes the stream.
        """
        timeout = httpx.Timeout(self.timeout, read=None)
        async with self.client.stream("GET", f"{self.api_prefix}/seats/stream", timeout=timeout) as response:
            response.raise_for_status()
            async for line in response.aiter_lines():
                if not line.startswith("data:"):
                    continue
                try:
                    yield SeatChangeEvent.model_validate_json(line[len("data:"):].strip())
                except PydanticValidationError as e:
                    logger.warning(f"Ignoring malformed seat change: {e}")

    async def aclose(self):
        await self.client.aclose()

    async def __aenter__(self) -> "SeatApiClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()
