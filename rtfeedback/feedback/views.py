import json
import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.http import JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from rtfeedback.feedback.helpers.classifier import classify
from rtfeedback.feedback.helpers.classifier import thresholds_from_settings
from rtfeedback.feedback.helpers.selector import select_feedback
from rtfeedback.feedback.orchestrator import get_orchestrator
from rtfeedback.feedback.profiles import parse_block_data
from rtfeedback.feedback.profiles import parse_participant_info
from rtfeedback.feedback.store import StoreError
from rtfeedback.feedback.tasks import refresh_feedback_patterns_task

logger = logging.getLogger(__name__)


@method_decorator(csrf_exempt, name="dispatch")
class GenerateFeedbackView(View):
    """
    Returns the participant's feedback pattern set plus the message for the
    block just completed. Generates and stores the set on first use.

    POST body: { participantInfo, blockData, force? }
    Returns:
        200 {"success": true, "feedbackPatterns", "fallback", "cached",
             "participantId", "scenarioKey", "feedback"}
        422 invalid JSON or invalid participantInfo / blockData
        503 the pattern store is unavailable
    """

    def post(self, request):
        try:
            data = json.loads(request.body)
        except (json.JSONDecodeError, ValueError):
            return JsonResponse({"error": "Invalid JSON"}, status=422)
        if not isinstance(data, dict):
            return JsonResponse({"error": "Request body must be a JSON object"}, status=422)

        try:
            profile = parse_participant_info(data.get("participantInfo"))
            current, previous = parse_block_data(data.get("blockData"))
        except ValidationError as exc:
            return JsonResponse({"error": "Invalid request", "details": exc.message_dict}, status=422)

        force = data.get("force", False)
        if not isinstance(force, bool):
            return JsonResponse(
                {"error": "Invalid request", "details": {"force": "'force' must be true or false."}},
                status=422,
            )

        try:
            resolution = get_orchestrator().resolve(profile, participant_id=profile.id, force=force)
        except StoreError:
            logger.exception("Feedback pattern store unavailable")
            return JsonResponse({"error": "Feedback pattern store unavailable"}, status=503)

        if resolution.fallback and getattr(settings, "FEEDBACK_BACKGROUND_RETRY", False):
            refresh_feedback_patterns_task(resolution.participant_id, profile.as_dict())

        thresholds = thresholds_from_settings()
        return JsonResponse(
            {
                "success": True,
                "feedbackPatterns": resolution.pattern_set,
                "fallback": resolution.fallback,
                "cached": resolution.cached,
                "participantId": resolution.participant_id,
                "scenarioKey": classify(current, previous, thresholds),
                "feedback": select_feedback(
                    current, previous, resolution.pattern_set, thresholds, language=profile.language
                ),
            },
            json_dumps_params={"ensure_ascii": False},
        )


generate_feedback_view = GenerateFeedbackView.as_view()
