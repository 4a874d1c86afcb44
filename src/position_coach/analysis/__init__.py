"""Pure-function position analysis package.

All functions take a chess.Board and return typed dataclass instances or
plain strings. No engine calls, no side effects: the explainer turns these
structured facts into coaching prose.
"""

# Re-export everything so `from position_coach.analysis import X` works
from position_coach.analysis.constants import *  # noqa: F401,F403
from position_coach.analysis.material import *  # noqa: F401,F403
from position_coach.analysis.pawns import *  # noqa: F401,F403
from position_coach.analysis.king_safety import *  # noqa: F401,F403
from position_coach.analysis.activity import *  # noqa: F401,F403
from position_coach.analysis.structure import *  # noqa: F401,F403
from position_coach.analysis.phase import *  # noqa: F401,F403
from position_coach.analysis.tactics import *  # noqa: F401,F403
from position_coach.analysis.mates import *  # noqa: F401,F403
