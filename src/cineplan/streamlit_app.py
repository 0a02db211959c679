import logging
import streamlit as st
import pandas as pd
from datetime import date

from cineplan.core.config import load_settings
from cineplan.core.models import FlexibilityConfig, SchedulePreferences, ShowtimeQuery
from cineplan.core.errors import ItineraryNotFoundError
from cineplan.core.scoring import format_itinerary_label, pick_recommended
from cineplan.engine import plan_day, save_selected_schedule
from cineplan.providers.csv_provider import CSVProvider
from cineplan.providers.http_provider import HttpShowtimeProvider
from cineplan.providers.mock_provider import MockProvider
from cineplan.services.result_cache import ItineraryCache
from cineplan.sqlite_schedule_store import SqliteScheduleStore

logging.basicConfig(level=logging.INFO)

st.set_page_config(
    page_title="Cinema Day Planner",
    layout="wide",
)

settings = load_settings()


@st.cache_resource
def get_itinerary_cache() -> ItineraryCache:
    # One cache per server process, shared by every session.
    return ItineraryCache(ttl_seconds=settings.cache_ttl_seconds)


@st.cache_resource
def get_schedule_store() -> SqliteScheduleStore:
    return SqliteScheduleStore(settings.db_path)


def get_provider(source: str):
    if source == "Local CSV":
        return CSVProvider(settings.showtimes_csv)
    if source == "Showtimes API":
        return HttpShowtimeProvider(settings.showtimes_url)
    return MockProvider()


def items_frame(itinerary) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "#": it.order + 1,
                "Movie": it.movie_title,
                "Session": it.session_type or "",
                "Starts": it.start_time,
                "Enter by": it.entry_deadline,
                "Leave at": it.exit_time,
                "Ends": it.end_time,
                "Minutes": it.duration_minutes,
            }
            for it in itinerary.items
        ]
    )


cache = get_itinerary_cache()
store = get_schedule_store()

st.title("🎬 Cinema Day Planner")
st.write("Pick the movies you want to see today; we work out which showtimes fit together.")

with st.sidebar:
    st.header("Where and when")

    source_options = ["Demo programme", "Local CSV"]
    if settings.showtimes_url:
        source_options.append("Showtimes API")
    source = st.radio("Showtimes source", options=source_options, index=0)

    cinema_code = st.text_input("Cinema code", "0013")
    play_date = st.date_input("Date", value=date.today(), min_value=date.today())

    st.markdown("---")
    st.header("Flexibility")

    allow_late_entry = st.slider("Late entry allowed (min)", 0, 30, 5)
    allow_early_exit = st.slider("Early exit allowed (min)", 0, 30, 5)
    break_time = st.slider("Break between movies (min)", 0, 60, 5)

    st.markdown("---")
    st.header("Preferences")

    prefer_matinee = st.checkbox("Prefer matinees (start before 14:00)", value=True)
    avoid_late_night = st.checkbox("Avoid finishing after 22:00", value=True)
    allow_meal_breaks = st.checkbox("Reward meal breaks", value=True)
    use_preferred_start = st.checkbox("I'd like to start around a given time")
    preferred_start = None
    if use_preferred_start:
        preferred_start = st.time_input("Preferred start").strftime("%H:%M")

    optimize = st.checkbox(
        "Rank by score",
        value=True,
        help=(
            "When enabled, plans are scored on breaks, timing preferences and day length. "
            "When disabled, feasible plans come first, shortest day first."
        ),
    )

query = ShowtimeQuery(cinema_code=cinema_code.strip(), play_date=play_date)

try:
    available = get_provider(source).fetch_movies(query)
except Exception as exc:
    st.error(f"Could not load showtimes: {exc}")
    available = []

titles = {m.id: m.title for m in available}
selected_ids = st.multiselect(
    "Movies",
    options=list(titles),
    format_func=lambda movie_id: titles[movie_id],
)

if st.button("Plan my day", disabled=not selected_ids):
    flexibility = FlexibilityConfig.clamped(allow_late_entry, allow_early_exit, break_time)
    preferences = SchedulePreferences(
        preferred_start_time=preferred_start,
        avoid_late_night=avoid_late_night,
        prefer_matinee=prefer_matinee,
        allow_meal_breaks=allow_meal_breaks,
    )
    st.session_state["result"] = plan_day(
        get_provider(source),
        ShowtimeQuery(cinema_code=query.cinema_code, play_date=play_date, movie_ids=selected_ids),
        flexibility,
        preferences,
        optimize=optimize,
        cache=cache,
        settings=settings,
    )

result = st.session_state.get("result")

if result is None:
    st.info("Choose a few movies, then click **Plan my day**. 🍿")
elif not result.ok:
    st.warning(result.error)
    for d in result.diagnostics:
        st.caption(d)
else:
    st.caption(
        f"{result.total_combinations} combinations checked · showing the best {len(result.itineraries)}"
    )
    for d in result.diagnostics:
        st.caption(d)

    recommended = pick_recommended(result.itineraries)
    if recommended:
        st.markdown("### ⭐ Recommended plan")
        col1, col2, col3 = st.columns(3)
        with col1:
            st.write(format_itinerary_label(recommended))
        with col2:
            st.metric("Total time", f"{recommended.total_duration} min")
        with col3:
            st.metric("Feasible", "Yes" if recommended.feasible else "No")

    st.markdown("---")

    labels = {it.id: format_itinerary_label(it) for it in result.itineraries}
    for itinerary in result.itineraries:
        with st.expander(labels[itinerary.id], expanded=itinerary is recommended):
            st.dataframe(items_frame(itinerary), width="stretch", hide_index=True)
            for d in itinerary.diagnostics:
                st.caption(d)

    st.subheader("Save a plan")
    chosen_id = st.selectbox("Plan", options=list(labels), format_func=lambda i: labels[i])
    user_id = st.text_input("Your user id")
    schedule_name = st.text_input("Name (optional)")

    if st.button("Save", disabled=not user_id.strip()):
        try:
            schedule_id = save_selected_schedule(
                cache,
                store,
                chosen_id,
                user_id=user_id.strip(),
                cinema_code=query.cinema_code,
                play_date=play_date,
                name=schedule_name.strip() or None,
            )
            st.success(f"Saved as {schedule_id}")
        except ItineraryNotFoundError as exc:
            st.error(str(exc))

    if user_id.strip():
        st.subheader("Your saved schedules")
        saved = store.get_user_schedules(user_id.strip())
        if saved.empty:
            st.info("Nothing saved yet.")
        else:
            st.dataframe(saved, width="stretch")
