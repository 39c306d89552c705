from django.dispatch import Signal

# Sent once a group's positions are confirmed for a user.
# Receivers get ``user_id``, ``tournament_id`` and ``group_id``; playoff guess
# recalculation hooks in here.
group_positions_confirmed = Signal()
