import pytest

from adaptive_planner.modules.reoptimization.weather_advisor import (
    WeatherSuggestionBuilder,
    format_risk_hours,
    is_outdoor,
)
from adaptive_planner.schemas.itinerary import Itinerary, TravelMatrix
from adaptive_planner.schemas.signals import WeatherSignal
from adaptive_planner.schemas.suggestion import SuggestionKind, SuggestionTrigger


@pytest.fixture
def builder():
    return WeatherSuggestionBuilder()


@pytest.fixture
def rain_at_two():
    return WeatherSignal(risk_hours=["14:00"])


@pytest.fixture
def museum(make_stop):
    return make_stop("Museum", 0.0, 0.0, duration=30, is_indoor=True)


@pytest.fixture
def park(make_stop):
    return make_stop("Park", 0.01, 0.0, duration=30, is_indoor=False)


def test_outdoor_stop_during_rain_moves_first(builder, rain_at_two, museum, park, make_item):
    itinerary = Itinerary(items=[
        make_item(museum, "10:00", "10:30"),
        make_item(park, "13:45", "14:15"),
    ])

    suggestion = builder.evaluate([museum, park], itinerary, rain_at_two)

    assert suggestion is not None
    assert suggestion.kind is SuggestionKind.REORDER
    assert suggestion.trigger is SuggestionTrigger.WEATHER
    assert suggestion.before_ids == ["act_museum", "act_park"]
    assert suggestion.after_ids == ["act_park", "act_museum"]
    assert suggestion.after_plan[0].start_time == "10:00"
    assert suggestion.reasons == [
        "Rain risk detected during 14:00",
        "1 outdoor activity scheduled during rain risk",
        "Moved outdoor stops earlier to avoid rain",
    ]
    assert suggestion.impact.weather_risk_reduced == 0.5
    assert suggestion.status.value == "pending"
    assert suggestion.suggestion_id.startswith("sug_")


def test_indoor_stop_is_not_affected(builder, rain_at_two, museum, make_stop, make_item):
    gallery = make_stop("Gallery", 0.01, 0.0, duration=30, is_indoor=True)
    itinerary = Itinerary(items=[
        make_item(museum, "10:00", "10:30"),
        make_item(gallery, "13:45", "14:15"),
    ])
    assert builder.evaluate([museum, gallery], itinerary, rain_at_two) is None


def test_unknown_indoor_flag_counts_as_outdoor(make_stop):
    assert is_outdoor(make_stop("Square"))
    assert not is_outdoor(make_stop("Hall", is_indoor=True))


def test_risky_stop_already_first(builder, rain_at_two, museum, park, make_item):
    itinerary = Itinerary(items=[
        make_item(park, "13:45", "14:15"),
        make_item(museum, "15:00", "15:30"),
    ])
    assert builder.evaluate([museum, park], itinerary, rain_at_two) is None


def test_locked_stops_keep_position(builder, make_stop, make_item):
    cafe = make_stop("Cafe", is_indoor=True)
    tour = make_stop("Tour", is_indoor=True, locked=True)
    garden = make_stop("Garden", is_indoor=False)
    itinerary = Itinerary(items=[
        make_item(cafe, "09:00", "10:00"),
        make_item(tour, "10:05", "11:05"),
        make_item(garden, "11:10", "12:10"),
    ])

    suggestion = builder.evaluate(
        [cafe, tour, garden], itinerary, WeatherSignal(risk_hours=["12:00"])
    )

    assert suggestion.after_ids == ["act_garden", "act_tour", "act_cafe"]


def test_locked_risky_stop_yields_nothing(builder, rain_at_two, museum, make_stop, make_item):
    park = make_stop("Park", locked=True)
    itinerary = Itinerary(items=[
        make_item(museum, "10:00", "10:30"),
        make_item(park, "13:45", "14:15"),
    ])
    assert builder.evaluate([museum, park], itinerary, rain_at_two) is None


def test_no_signal_or_itinerary(builder, rain_at_two, museum, park, make_item):
    itinerary = Itinerary(items=[make_item(park, "13:45", "14:15")])
    assert builder.evaluate([park], itinerary, None) is None
    assert builder.evaluate([park], itinerary, WeatherSignal()) is None
    assert builder.evaluate([park], None, rain_at_two) is None
    assert builder.evaluate([park], Itinerary(), rain_at_two) is None


@pytest.mark.parametrize("hours, expected", [
    (["14:00"], "14:00"),
    (["14:00", "15:00"], "14:00, 15:00"),
    (["12:00", "13:00", "15:00"], "12:00–15:00"),
])
def test_format_risk_hours(hours, expected):
    assert format_risk_hours(hours) == expected


def test_matrix_timed_plan_is_compared_on_the_matrix(builder, make_stop, make_item):
    museum = make_stop("Museum", duration=60, is_indoor=True)
    gallery = make_stop("Gallery", duration=60, is_indoor=True)
    park = make_stop("Park", duration=60, is_indoor=False)
    half_hour = ((0, 1800, 1800), (1800, 0, 1800), (1800, 1800, 0))
    matrix = TravelMatrix(
        durations=half_hour,
        index={"act_museum": 0, "act_gallery": 1, "act_park": 2},
    )
    itinerary = Itinerary(
        items=[
            make_item(museum, "09:00", "10:00"),
            make_item(gallery, "10:30", "11:30", 30),
            make_item(park, "12:00", "13:00", 30),
        ],
        total_travel_min=60,
        travel_matrix=matrix,
    )

    suggestion = builder.evaluate([museum, gallery, park], itinerary, WeatherSignal(risk_hours=["12:00"]))

    assert suggestion.after_ids == ["act_park", "act_museum", "act_gallery"]
    # same-coordinate stops would get 5 min haversine legs; the matrix says 30
    assert [i.travel_from_prev_min for i in suggestion.after_plan] == [0, 30, 30]
    assert suggestion.impact.travel_saved_min == 0
