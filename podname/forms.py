from django import forms
from django.conf import settings

from .converter import InvalidFormat, InvalidGroupSize, MissingInput, convert

DEFAULT_PODS_PER_SLICE = 512


def default_pods_per_slice() -> int:
    return getattr(settings, "PODNAME_DEFAULT_PODS_PER_SLICE", DEFAULT_PODS_PER_SLICE)


class ConversionForm(forms.Form):
    task_id = forms.CharField(
        label="Task ID",
        required=False,
        strip=True,
        widget=forms.TextInput(
            attrs={"placeholder": "/job:jax_worker/replica:0/task:2973"}
        ),
    )
    pods_per_slice = forms.CharField(
        label="K8s Pods Per Slice (GKE Nodepool)",
        required=False,
        widget=forms.NumberInput(attrs={"min": 1}),
        help_text=(
            "K8s pods per slice is generally the same as the jax processes or the "
            "amount of VMs per slice. For example, when using v5p-4096 slices, you "
            "would put 512 as pods per slice."
        ),
    )

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["pods_per_slice"].initial = default_pods_per_slice()

    def clean(self):
        cleaned = super().clean()
        if self.has_error("task_id") or self.has_error("pods_per_slice"):
            return cleaned
        try:
            cleaned["result"] = convert(
                cleaned.get("task_id"),
                cleaned.get("pods_per_slice"),
            )
        except MissingInput as exc:
            raise forms.ValidationError(exc.message, code=exc.kind)
        except InvalidFormat as exc:
            self.add_error("task_id", forms.ValidationError(exc.message, code=exc.kind))
        except InvalidGroupSize as exc:
            self.add_error(
                "pods_per_slice", forms.ValidationError(exc.message, code=exc.kind)
            )
        return cleaned
