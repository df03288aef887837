"""
Blood Type Compatibility Helper
Determines which donor blood groups can give red cells to which recipient groups
"""

ABO_ANTIGENS = {
    'O': frozenset(),
    'A': frozenset({'A'}),
    'B': frozenset({'B'}),
    'AB': frozenset({'A', 'B'}),
}
RH_FACTORS = ('+', '-')

BLOOD_GROUPS = [f"{abo}{rh}" for abo in ('A', 'B', 'AB', 'O') for rh in RH_FACTORS]


def split_blood_group(blood_group):
    """
    'AB-' -> ('AB', '-'). Returns None for anything that is not one of the
    eight ABO/Rh groups.
    """
    if not blood_group or blood_group[-1] not in RH_FACTORS:
        return None
    abo, rh = blood_group[:-1].upper(), blood_group[-1]
    if abo not in ABO_ANTIGENS:
        return None
    return abo, rh


def is_compatible(donor_blood_group, recipient_blood_group):
    """
    A donor is compatible when the recipient already carries every antigen
    on the donor's cells (ABO), and Rh+ blood only goes to Rh+ recipients.
    """
    donor = split_blood_group(donor_blood_group)
    recipient = split_blood_group(recipient_blood_group)
    if donor is None or recipient is None:
        return False

    donor_abo, donor_rh = donor
    recipient_abo, recipient_rh = recipient
    if not ABO_ANTIGENS[donor_abo] <= ABO_ANTIGENS[recipient_abo]:
        return False
    return donor_rh == '-' or recipient_rh == '+'


def get_compatible_donors(recipient_blood_group):
    """Blood groups that can donate to the recipient"""
    return [group for group in BLOOD_GROUPS if is_compatible(group, recipient_blood_group)]
