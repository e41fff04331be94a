from django.test import SimpleTestCase, override_settings
from django.urls import reverse

from .converter import (
    ConversionResult,
    InvalidFormat,
    InvalidGroupSize,
    MissingInput,
    convert,
    extract_from_last_colon,
    extract_from_task_segment,
)
from .forms import ConversionForm
from .views import _first_form_error


class ConverterTests(SimpleTestCase):
    def test_structured_identifier(self):
        result = convert("/job:x/replica:0/task:2973", 512)

        self.assertEqual(result.task_id, 2973)
        self.assertEqual(result.group_index, 5)
        self.assertEqual(result.position_index, 413)
        self.assertEqual(result.name, "job-5-413")

    def test_bare_identifier_matches_structured_identifier(self):
        self.assertEqual(
            convert("2973", 512),
            convert("/job:jax_worker/replica:0/task:2973", 512),
        )

    def test_group_size_accepted_as_text(self):
        result = convert("2973", " 512 ")

        self.assertEqual(result.group_size, 512)
        self.assertEqual(result.name, "job-5-413")

    def test_integral_float_group_size_is_accepted(self):
        self.assertEqual(convert("10", 4.0).name, "job-2-2")
        self.assertEqual(convert("10", "4.0").name, "job-2-2")

    def test_division_properties_hold(self):
        for group_size in (1, 2, 7, 512, 4096):
            for task_id in (0, 1, 6, 7, 511, 512, 513, 2973, 40_000_000):
                result = convert(str(task_id), group_size)
                self.assertEqual(result.group_index, task_id // group_size)
                self.assertEqual(result.position_index, task_id % group_size)
                self.assertEqual(
                    result.group_index * group_size + result.position_index, task_id
                )
                self.assertGreaterEqual(result.position_index, 0)
                self.assertLess(result.position_index, group_size)

    def test_large_task_ids_do_not_overflow(self):
        task_id = 2**70 + 5
        result = convert(str(task_id), 512)

        self.assertEqual(result.group_index * 512 + result.position_index, task_id)

    def test_last_task_segment_wins(self):
        self.assertEqual(convert("/task:1/job:x/task:9", 4).task_id, 9)

    def test_zero_group_size_is_rejected_regardless_of_identifier(self):
        for identifier in ("2973", "abc"):
            with self.assertRaises(InvalidGroupSize):
                convert(identifier, 0)

    def test_negative_group_size_is_rejected(self):
        with self.assertRaises(InvalidGroupSize):
            convert("2973", -512)
        with self.assertRaises(InvalidGroupSize):
            convert("abc", "-1")

    def test_non_numeric_group_sizes_are_rejected(self):
        for value in ("abc", "inf", "nan", "2.5", 2.5, float("inf"), True, [512]):
            with self.subTest(value=value):
                with self.assertRaises(InvalidGroupSize):
                    convert("2973", value)

    def test_identifier_without_digits_is_invalid(self):
        with self.assertRaises(InvalidFormat):
            convert("abc", 512)

    def test_negative_identifier_is_invalid(self):
        with self.assertRaises(InvalidFormat):
            convert("-5", 512)
        with self.assertRaises(InvalidFormat):
            convert("/job:x/task:-5", 512)

    def test_trailing_garbage_is_invalid(self):
        with self.assertRaises(InvalidFormat):
            convert("2973abc", 512)

    def test_group_size_must_be_plain_decimal_text(self):
        for value in ("5_12", "５１２", "0x200", "1e3"):
            with self.subTest(value=value):
                with self.assertRaises(InvalidGroupSize):
                    convert("2973", value)

    def test_non_ascii_digits_are_invalid(self):
        for identifier in ("２９７３", "/job:x/task:٢٩٧٣"):
            with self.subTest(identifier=identifier):
                with self.assertRaises(InvalidFormat):
                    convert(identifier, 512)

    def test_oversized_identifier_is_invalid(self):
        for identifier in ("9" * 5000, "/job:x/replica:0/task:" + "9" * 5000):
            with self.subTest(length=len(identifier)):
                with self.assertRaises(InvalidFormat) as ctx:
                    convert(identifier, 512)
                self.assertIn("too long", ctx.exception.message)

    def test_missing_inputs(self):
        for identifier, group_size in (
            ("", 512),
            ("   ", 512),
            (None, 512),
            ("2973", ""),
            ("2973", None),
            ("", None),
        ):
            with self.subTest(identifier=identifier, group_size=group_size):
                with self.assertRaises(MissingInput):
                    convert(identifier, group_size)

    def test_error_kinds_and_messages(self):
        with self.assertRaises(InvalidFormat) as ctx:
            convert("abc", 512)
        self.assertEqual(ctx.exception.kind, "invalid_format")
        self.assertIn("task:<number>", ctx.exception.message)
        self.assertIsInstance(ctx.exception, ValueError)

    def test_breakdown_describes_arithmetic(self):
        result = ConversionResult(task_id=2973, group_size=512, group_index=5, position_index=413)

        self.assertEqual(
            result.breakdown,
            (
                "slice id = floor(2973 / 512) = 5",
                "process id = 2973 mod 512 = 413",
                "check: 5 * 512 + 413 = 2973",
            ),
        )


class ExtractionStrategyTests(SimpleTestCase):
    def test_task_segment_requires_leading_slash(self):
        self.assertIsNone(extract_from_task_segment("task:12"))
        self.assertEqual(extract_from_task_segment("/replica:0/task:12"), 12)

    def test_last_colon_fallback_is_lenient(self):
        self.assertEqual(extract_from_last_colon("task:12"), 12)
        self.assertEqual(extract_from_last_colon("/job:x/replica:3"), 3)
        self.assertEqual(extract_from_last_colon(" 42 "), 42)
        self.assertIsNone(extract_from_last_colon("foo:bar"))


class ConversionFormTests(SimpleTestCase):
    def test_valid_form_carries_result(self):
        form = ConversionForm({"task_id": "/job:jax_worker/replica:0/task:2973", "pods_per_slice": "512"})

        self.assertTrue(form.is_valid())
        self.assertEqual(form.cleaned_data["result"].name, "job-5-413")

    def test_invalid_identifier_is_attached_to_task_field(self):
        form = ConversionForm({"task_id": "abc", "pods_per_slice": "512"})

        self.assertFalse(form.is_valid())
        self.assertIn("task_id", form.errors)
        self.assertEqual(form.errors.as_data()["task_id"][0].code, "invalid_format")

    def test_invalid_group_size_is_attached_to_pods_field(self):
        form = ConversionForm({"task_id": "2973", "pods_per_slice": "0"})

        self.assertFalse(form.is_valid())
        self.assertEqual(
            form.errors["pods_per_slice"], ["Pods per slice must be a positive number."]
        )

    def test_missing_input_is_a_form_level_error(self):
        form = ConversionForm({"task_id": "", "pods_per_slice": "512"})

        self.assertFalse(form.is_valid())
        self.assertEqual(form.non_field_errors(), ["Please fill in both fields."])
        self.assertEqual(
            _first_form_error(form, "fallback"),
            ("Please fill in both fields.", "missing_input"),
        )

    @override_settings(PODNAME_DEFAULT_PODS_PER_SLICE=256)
    def test_initial_pods_per_slice_comes_from_settings(self):
        form = ConversionForm()

        self.assertEqual(form.fields["pods_per_slice"].initial, 256)


class IndexViewTests(SimpleTestCase):
    def test_get_renders_empty_form(self):
        response = self.client.get(reverse("podname:index"))

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "JAX Task ID to Pod Name Converter")
        self.assertContains(response, 'value="512"')
        self.assertIsNone(response.context["result"])

    def test_post_shows_pod_name_and_breakdown(self):
        response = self.client.post(
            reverse("podname:index"),
            {"task_id": "/job:jax_worker/replica:0/task:2973", "pods_per_slice": "512"},
        )

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "job-5-413")
        self.assertContains(response, "floor(2973 / 512) = 5")
        self.assertEqual(response.context["error"], "")

    def test_post_with_invalid_identifier_shows_error(self):
        response = self.client.post(
            reverse("podname:index"), {"task_id": "abc", "pods_per_slice": "512"}
        )

        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.context["result"])
        self.assertTrue(response.context["error"].startswith("Invalid Task ID format."))


class ConvertApiTests(SimpleTestCase):
    def test_get_returns_conversion(self):
        response = self.client.get(
            reverse("podname:convert"), {"task_id": "2973", "pods_per_slice": "512"}
        )

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["task_id"], 2973)
        self.assertEqual(payload["pods_per_slice"], 512)
        self.assertEqual(payload["slice_id"], 5)
        self.assertEqual(payload["process_id"], 413)
        self.assertEqual(payload["pod_name"], "job-5-413")
        self.assertEqual(len(payload["breakdown"]), 3)

    def test_post_returns_conversion(self):
        response = self.client.post(
            reverse("podname:convert"),
            {"task_id": "/job:x/replica:0/task:7", "pods_per_slice": "4"},
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["pod_name"], "job-1-3")

    def test_error_kinds_are_reported(self):
        cases = [
            ({"pods_per_slice": "512"}, "missing_input"),
            ({"task_id": "abc", "pods_per_slice": "512"}, "invalid_format"),
            ({"task_id": "2973", "pods_per_slice": "-1"}, "invalid_group_size"),
        ]
        for params, kind in cases:
            with self.subTest(kind=kind):
                response = self.client.get(reverse("podname:convert"), params)
                self.assertEqual(response.status_code, 400)
                payload = response.json()
                self.assertEqual(payload["kind"], kind)
                self.assertIn("error", payload)

    def test_oversized_identifier_is_a_client_error(self):
        response = self.client.get(
            reverse("podname:convert"), {"task_id": "9" * 5000, "pods_per_slice": "512"}
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["kind"], "invalid_format")

    def test_null_character_in_identifier_is_invalid_format(self):
        response = self.client.get(
            reverse("podname:convert"), {"task_id": "29\x0073", "pods_per_slice": "512"}
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["kind"], "invalid_format")

    def test_other_methods_are_not_allowed(self):
        response = self.client.put(reverse("podname:convert"))

        self.assertEqual(response.status_code, 405)
