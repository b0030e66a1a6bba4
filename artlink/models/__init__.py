"""Data models for artworks, NFC tags, certificates and profiles."""
from artlink.models.artwork import Artwork
from artlink.models.certificate import Certificate
from artlink.models.nfc_tag import NFCTag
from artlink.models.profile import ProfileStatistics, PublicProfile, UserProfile

__all__ = [
    "Artwork",
    "Certificate",
    "NFCTag",
    "ProfileStatistics",
    "PublicProfile",
    "UserProfile",
]
