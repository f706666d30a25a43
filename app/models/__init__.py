from app.models.profile import Profile
from app.models.measurement import Measurement

__all__ = [
    "Profile",
    "Measurement",
]
