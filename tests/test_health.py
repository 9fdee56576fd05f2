"""Basic health check tests."""


def test_import_moxmuse():
    """Test that moxmuse package can be imported."""
    import moxmuse
    assert moxmuse.__version__ == "0.3.0"


def test_import_consultation():
    """Test that the consultation package exposes the wizard."""
    from consultation import STEP_DEFINITIONS, WizardStateMachine

    wizard = WizardStateMachine()
    assert wizard.total_steps == len(STEP_DEFINITIONS) == 10


def test_settings_load():
    """Test that settings load with test environment overrides."""
    from moxmuse.config import get_settings

    settings = get_settings()
    assert settings.is_development
    assert settings.wizard_storage_backend == "memory"
    assert settings.analyze_delay_seconds == 0
