# efootball_backend/models/__init__.py
# Centralized imports for all entity models and schemas

# Team
from .team_model import Team, TeamUpdate, ZERO_STATS

# Match and results
from .match_model import Match, MatchCreate, MatchResult, MatchStatus

# Pending result submissions
from .pending_result_model import PendingResult, ResultStatus, Submitter

# Users
from .user_model import User, UserCreate, UserLogin, UserRead, UserRegister, UserRole, UserUpdate

# Settings
from .settings_model import LeagueSettings, LeagueSettingsUpdate
