"""
Row-level authorization for records that carry an owner.

A record is accessible to its owner. A caller whose role grants
:attr:`domain.Capability.ACCESS_UNOWNED` may also access records that have no
owner at all; this is for legacy data and is not a general admin bypass.
Everything else is denied, and callers should report a denial exactly like a
missing record, so that guessable IDs do not reveal which records exist.
"""

from typing import Optional

from .. import domain


class NoIdentity(RuntimeError):
    """An owned record was requested without an authenticated identity."""


def is_owner_or_admin_override(owner: Optional[str],
                               caller: Optional[domain.Session]) -> bool:
    """
    Determine whether ``caller`` may access a record owned by ``owner``.

    Parameters
    ----------
    owner : str or None
        Username of the record owner, or ``None`` for unowned records.
    caller : :class:`domain.Session` or None
        ``None`` for anonymous callers, who are always denied.

    Returns
    -------
    bool

    """
    if caller is None:
        return False
    if owner is not None:
        return owner == caller.username
    return caller.role.can(domain.Capability.ACCESS_UNOWNED)


def visibility(caller: Optional[domain.Session]) -> domain.Visibility:
    """Get the listing filter matching :func:`is_owner_or_admin_override`."""
    if caller is None:
        raise NoIdentity('Listing requires an authenticated caller')
    return domain.Visibility(
        owner=caller.username,
        include_unowned=caller.role.can(domain.Capability.ACCESS_UNOWNED)
    )


def owner_for_new_record(caller: Optional[domain.Session]) -> str:
    """New records are always owned by the caller who creates them."""
    if caller is None:
        raise NoIdentity('Creation requires an authenticated caller')
    return caller.username
