def get_logged_in_user(request):
    """The authenticated user of the request, or None."""
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        return None
    return user
