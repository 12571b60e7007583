from django.contrib import admin

from .models import FeedbackPatternRecord


@admin.register(FeedbackPatternRecord)
class FeedbackPatternRecordAdmin(admin.ModelAdmin):
    list_display = ["participant_id", "language", "generated_at", "updated_at"]
    list_filter = ["language"]
    search_fields = ["participant_id"]
    ordering = ["-generated_at"]
    readonly_fields = ["profile_hash", "generated_at", "updated_at"]
