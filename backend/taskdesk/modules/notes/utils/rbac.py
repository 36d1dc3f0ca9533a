from taskdesk.modules.auth.utils.rbac import Actor, AssignmentLookup, CanAccessUser, IsLockedForOwner
from taskdesk.modules.notes.models import Note


def CanViewNote(actor: Actor, note: Note, lookup: AssignmentLookup) -> bool:
    """Check if actor can view note."""
    return CanAccessUser(actor, note.UserId, lookup)


def CanEditNote(actor: Actor, note: Note, lookup: AssignmentLookup) -> bool:
    """Check if actor can edit note."""
    if not CanViewNote(actor, note, lookup):
        return False
    # Owners may read, not change, notes a manager wrote for them
    return not IsLockedForOwner(actor, note.UserId, note.CreatedByUserId)


def CanDeleteNote(actor: Actor, note: Note, lookup: AssignmentLookup) -> bool:
    """Check if actor can delete note."""
    return CanEditNote(actor, note, lookup)
