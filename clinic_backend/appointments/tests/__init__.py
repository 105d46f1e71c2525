import importlib
import pkgutil


def load_tests(loader, standard_tests, pattern):
    for module_info in pkgutil.iter_modules(__path__):
        if not module_info.name.startswith("test_"):
            continue
        module = importlib.import_module(f"{__name__}.{module_info.name}")
        standard_tests.addTests(loader.loadTestsFromModule(module))
    return standard_tests
