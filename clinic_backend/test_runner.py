from __future__ import annotations

import importlib

from django.conf import settings
from django.test.runner import DiscoverRunner


class ClinicTestRunner(DiscoverRunner):
	"""Test runner that loads app tests by dotted module path."""

	def build_suite(self, test_labels=None, **kwargs):
		"""Build the test suite.

		Filesystem discovery of `tests/` packages below app packages is not
		stable across Python versions, so without explicit labels every
		`<app>.tests` package of this project is loaded by dotted path instead.
		Each package provides `load_tests()` for its `test_*.py` submodules.
		"""
		if not test_labels:
			labels: list[str] = []
			for app in settings.INSTALLED_APPS:
				if not app.startswith("clinic_backend."):
					continue
				candidate = f"{app}.tests"
				try:
					importlib.import_module(candidate)
				except ModuleNotFoundError:
					continue
				labels.append(candidate)

			test_labels = labels or None

		return super().build_suite(test_labels, **kwargs)
