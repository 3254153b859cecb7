from .mocks import (
    MockGateway, MockSigner, MockResponse, MockSession, RecordingSleep,
    WALLET_ADDRESS, OTHER_ADDRESS, committed,
)

__all__ = [
    "MockGateway",
    "MockSigner",
    "MockResponse",
    "MockSession",
    "RecordingSleep",
    "WALLET_ADDRESS",
    "OTHER_ADDRESS",
    "committed",
]
