from __future__ import annotations

import logging

from django.core.exceptions import NON_FIELD_ERRORS
from django.http import JsonResponse
from django.shortcuts import render
from django.views.decorators.csrf import ensure_csrf_cookie
from django.views.decorators.http import require_http_methods

from .converter import ConversionResult, InvalidFormat, InvalidGroupSize, MissingInput
from .forms import ConversionForm

logger = logging.getLogger(__name__)


FIELD_ERROR_KINDS = {
    NON_FIELD_ERRORS: MissingInput.kind,
    "task_id": InvalidFormat.kind,
    "pods_per_slice": InvalidGroupSize.kind,
}


def _first_form_error(form, default_message: str) -> tuple[str, str]:
    """Return the message and error kind of the first error on a bound form."""

    if not form.errors:
        return default_message, MissingInput.kind
    for field, errors in form.errors.as_data().items():
        if errors:
            return errors[0].messages[0], FIELD_ERROR_KINDS.get(field, InvalidFormat.kind)
    return default_message, MissingInput.kind


def _result_payload(result: ConversionResult) -> dict:
    return {
        "task_id": result.task_id,
        "pods_per_slice": result.group_size,
        "slice_id": result.group_index,
        "process_id": result.position_index,
        "pod_name": result.name,
        "breakdown": list(result.breakdown),
    }


@ensure_csrf_cookie
@require_http_methods(["GET", "POST"])
def index(request):
    result = None
    error = ""
    if request.method == "POST":
        form = ConversionForm(request.POST)
        if form.is_valid():
            result = form.cleaned_data["result"]
        else:
            error, code = _first_form_error(form, "Unable to convert the task ID.")
            logger.info("Rejected conversion (%s): %r", code, request.POST.get("task_id"))
    else:
        form = ConversionForm()
    context = {
        "form": form,
        "result": result,
        "error": error,
    }
    return render(request, "podname/index.html", context)


@require_http_methods(["GET", "POST"])
def convert_api(request):
    data = request.POST if request.method == "POST" else request.GET
    form = ConversionForm(data)
    if not form.is_valid():
        message, code = _first_form_error(form, "Unable to convert the task ID.")
        logger.info("Rejected conversion (%s): %r", code, data.get("task_id"))
        return JsonResponse({"error": message, "kind": code}, status=400)
    return JsonResponse(_result_payload(form.cleaned_data["result"]))
