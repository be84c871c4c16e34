from .ball import BallInitializer  # noqa: F401
from .mask import MaskInitializer  # noqa: F401
from .seeded import SeededInitializer  # noqa: F401
