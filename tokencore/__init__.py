"""Core of a USB security token: CTAPHID framing, APDU units, PIN storage and CRC-32."""

__version__ = "0.1.0"
__all__ = ["apdu", "crc", "ctaphid", "pin", "storage"]