from datetime import date, timedelta

# Whole-blood donors wait this long between donations
DONATION_COOLDOWN_DAYS = 90


def next_eligible_date(last_donation_date):
    if last_donation_date is None:
        return None
    return last_donation_date + timedelta(days=DONATION_COOLDOWN_DAYS)


def is_cooldown_over(last_donation_date, today=None) -> bool:
    """True when the donor has never donated or the cooldown has elapsed."""
    if last_donation_date is None:
        return True
    today = today or date.today()
    return (today - last_donation_date).days >= DONATION_COOLDOWN_DAYS
