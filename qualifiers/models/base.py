from django.db import models


class TimestampMixin(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class ActiveMixin(models.Model):
    """Inactive tournaments stay visible but accept no prediction edits."""

    is_active = models.BooleanField(default=True)

    class Meta:
        abstract = True


class NamedMixin(models.Model):
    name = models.CharField(max_length=200)

    class Meta:
        abstract = True

    def __str__(self) -> str:
        return self.name


class CompletionMixin(models.Model):
    """Set once the final standings are known; scoring reads results only then."""

    is_completed = models.BooleanField(default=False)

    class Meta:
        abstract = True
