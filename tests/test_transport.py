import pytest

from tripopt.modules.planning.transport import TransportMode, classify_transport_mode


@pytest.mark.parametrize(
    "km, preferred, expected",
    [
        (0.5, "car", TransportMode.WALKING),
        (1.0, "car", TransportMode.WALKING),
        (1.01, "car", TransportMode.CAR),
        (10.0, "public_transport", TransportMode.PUBLIC_TRANSPORT),
        (20.0, "public_transport", TransportMode.PUBLIC_TRANSPORT),
        (20.0, "car", TransportMode.CAR),
        (25.0, "car", TransportMode.CAR),
        (25.0, "public_transport", TransportMode.CAR),
        (200.0, "car", TransportMode.CAR),
        (200.5, "car", TransportMode.FLIGHT),
        (300.0, "walking", TransportMode.FLIGHT),
    ],
)
def test_classify_transport_mode(km, preferred, expected):
    assert classify_transport_mode(km, preferred) is expected


def test_unknown_preferred_mode_is_rejected():
    with pytest.raises(ValueError):
        classify_transport_mode(5.0, "boat")
