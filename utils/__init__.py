"""UTC time helpers and acting-user context."""

from utils.timezone import local_year, now_utc, to_local
from utils.user_context import clear_current_user_id, get_current_user_id, set_current_user_id, user_context
