from .person import Person  # noqa: F401
from .identity import Identity, IdentityRole  # noqa: F401
from .ministry import Ministry, MinistryLeadership  # noqa: F401
from .event import Event, EventState  # noqa: F401
