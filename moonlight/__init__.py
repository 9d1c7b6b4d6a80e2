"""Control channel pieces for a game-streaming client: field buffers, framing, AES-GCM sealing, message parsing, frame-loss and reference frame tracking, and port testing."""

__version__ = "0.1.0"