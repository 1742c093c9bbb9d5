import math

from dateutil.relativedelta import relativedelta

from backend.errors import PremiumRequiredError
from backend.models import utcnow

TRIAL_PERIOD = relativedelta(days=7)
SECONDS_PER_DAY = 60 * 60 * 24


def trial_end_date(user):
    return user.trial_start_date + TRIAL_PERIOD


def compute_trial_status(user, now=None):
    """
    Works out the user's premium/trial standing at `now`.

    Premium never expires once granted. The trial is active up to and
    including its end instant; daysLeft rounds partial days up.
    """
    now = now or utcnow()
    end_date = trial_end_date(user)
    is_trial_active = now <= end_date

    days_left = 0
    if is_trial_active:
        days_left = math.ceil((end_date - now).total_seconds() / SECONDS_PER_DAY)

    return {
        'isPremium': bool(user.premium_user),
        'isTrialActive': is_trial_active,
        'daysLeft': days_left,
        'trialEndDate': end_date,
    }


def require_premium_access(user, now=None):
    """Raises PremiumRequiredError unless the user is premium or still in trial."""
    status = compute_trial_status(user, now)
    if not (status['isPremium'] or status['isTrialActive']):
        raise PremiumRequiredError()
    return status
