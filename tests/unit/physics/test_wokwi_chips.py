# tests/unit/physics/test_wokwi_chips.py
"""Tests for the Wokwi chip models and WokwiBridge.

Test Coverage:
- DAC/ADC conversion helpers
- HeaterElementChip heating, cooling and limits
- TemperatureControllerChip PID and anti-windup
- WokwiBridge timer ordering and engine coupling
"""

import pytest

from components.physics.wokwi_chips import (
    HeaterElementChip,
    HeaterElementParameters,
    TemperatureControllerChip,
    WokwiBridge,
    adc_to_temperature,
    temperature_to_dac,
)


# ================================================================
# CONVERSION TESTS
# ================================================================
class TestConversion:
    """Test the 20-50°C <-> 0-4095 mapping."""

    @pytest.mark.parametrize(
        "temperature,expected",
        [(20.0, 0), (50.0, 4095), (35.0, 2047), (10.0, 0), (60.0, 4095)],
    )
    def test_temperature_to_dac(self, temperature, expected):
        """Test mapping and clamping at both ends."""
        assert temperature_to_dac(temperature) == expected

    def test_adc_to_temperature_endpoints(self):
        """Test the inverse mapping."""
        assert adc_to_temperature(0) == 20.0
        assert adc_to_temperature(4095) == 50.0


# ================================================================
# HEATER ELEMENT TESTS
# ================================================================
class TestHeaterElementChip:
    """Test HeaterElementChip."""

    def test_starts_at_ambient_and_off(self, stepped_clock):
        """Test initial state."""
        heater = HeaterElementChip(clock=stepped_clock)

        assert heater.state.temperature_c == 24.0
        assert heater.state.is_on is False
        assert heater.state.feedback_dac == temperature_to_dac(24.0)

    def test_heats_at_rated_power(self, stepped_clock):
        """Test 0.5°C/s at 50 W."""
        heater = HeaterElementChip(clock=stepped_clock)
        heater.set_control(True)

        heater.step(1.0)

        assert heater.state.temperature_c == pytest.approx(24.5)

    def test_heat_rate_scales_with_power(self, stepped_clock):
        """Test that a 100 W element heats twice as fast."""
        heater = HeaterElementChip(HeaterElementParameters(power_watts=100.0), stepped_clock)
        heater.set_control(True)

        heater.step(1.0)

        assert heater.state.temperature_c == pytest.approx(25.0)

    def test_temperature_limited_to_maximum(self, stepped_clock):
        """Test the element maximum."""
        heater = HeaterElementChip(clock=stepped_clock)
        heater.set_control(True)

        heater.step(100.0)

        assert heater.state.temperature_c == 50.0
        assert heater.state.feedback_dac == 4095

    def test_cools_towards_ambient(self, stepped_clock):
        """Test Newton cooling while off."""
        heater = HeaterElementChip(clock=stepped_clock)
        heater.state.temperature_c = 34.0

        heater.step(1.0)

        assert heater.state.temperature_c == pytest.approx(33.0)

    @pytest.mark.parametrize("power", [0.0, -10.0])
    def test_rejects_non_positive_power(self, power):
        """Test power validation."""
        with pytest.raises(ValueError):
            HeaterElementChip(HeaterElementParameters(power_watts=power))

    def test_telemetry(self, stepped_clock):
        """Test telemetry format."""
        heater = HeaterElementChip(clock=stepped_clock)

        assert set(heater.get_telemetry()) == {"temperature_c", "is_on", "feedback_dac"}


# ================================================================
# CONTROLLER TESTS
# ================================================================
class TestTemperatureControllerChip:
    """Test TemperatureControllerChip."""

    def test_heater_on_when_cold(self, stepped_clock):
        """Test that a cold reading drives the heater output high."""
        controller = TemperatureControllerChip(clock=stepped_clock)
        controller.write_temp_in(temperature_to_dac(30.0))

        controller.step(1.0)

        assert controller.state.current_temp_c == pytest.approx(30.0, abs=0.01)
        assert controller.state.heater_out is True

    def test_heater_off_when_hot(self, stepped_clock):
        """Test that a hot reading drives the heater output low."""
        controller = TemperatureControllerChip(clock=stepped_clock)
        controller.write_temp_in(4095)

        controller.step(1.0)

        assert controller.state.current_temp_c == 50.0
        assert controller.state.heater_out is False

    def test_input_is_clamped_to_converter_range(self, stepped_clock):
        """Test that out-of-range pin values are clamped."""
        controller = TemperatureControllerChip(clock=stepped_clock)
        controller.write_temp_in(5000)

        controller.step(1.0)

        assert controller.state.current_temp_c == 50.0

    def test_integral_anti_windup(self, stepped_clock):
        """Test that the integral never exceeds its limit.

        WHY: A long cold start must not leave the heater latched on.
        """
        controller = TemperatureControllerChip(clock=stepped_clock)
        controller.write_temp_in(0)

        for _ in range(20):
            controller.step(1.0)

        assert controller.state.integral == 10.0

    def test_set_setpoint(self, stepped_clock):
        """Test changing the controller setpoint."""
        controller = TemperatureControllerChip(clock=stepped_clock)
        controller.set_setpoint(25.0)
        controller.write_temp_in(temperature_to_dac(30.0))

        controller.step(1.0)

        assert controller.state.heater_out is False


# ================================================================
# BRIDGE TESTS
# ================================================================
class TestWokwiBridge:
    """Test WokwiBridge."""

    @pytest.fixture
    def bridge(self, engine, stepped_clock):
        return WokwiBridge(
            engine,
            HeaterElementChip(clock=stepped_clock),
            TemperatureControllerChip(clock=stepped_clock),
        )

    def test_no_ticks_before_first_timer(self, bridge):
        """Test that nothing fires before the heater period."""
        assert bridge.advance(0.4) == 0
        assert bridge.engine.get_data()["temperature"] == 36.5

    def test_ticks_in_timer_order(self, bridge):
        """Test tick count and ordering over one second.

        Heater at 0.5s, then controller and heater at 1.0s (controller
        first), so the heater is already on for its second tick.
        """
        ticks = bridge.advance(1.0)

        assert ticks == 3
        assert bridge.elapsed == pytest.approx(1.0)
        assert bridge.heater.state.is_on is True
        assert bridge.heater.state.temperature_c == pytest.approx(24.25)

    def test_pushes_heater_into_engine(self, bridge):
        """Test that the engine receives heater temperature and level."""
        bridge.advance(1.0)

        data = bridge.engine.get_data()
        assert data["temperature"] == pytest.approx(24.25)
        assert data["heaterOn"] is True

    def test_advance_accumulates(self, bridge):
        """Test that split advances match a single advance."""
        assert bridge.advance(0.3) + bridge.advance(0.3) + bridge.advance(0.4) == 3

    def test_negative_advance_rejected(self, bridge):
        """Test negative time validation."""
        with pytest.raises(ValueError):
            bridge.advance(-1.0)

    def test_status(self, bridge):
        """Test status format."""
        bridge.advance(0.5)

        status = bridge.get_status()

        assert status["elapsed"] == pytest.approx(0.5)
        assert "heater" in status
        assert "controller" in status
