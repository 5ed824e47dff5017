"""
Streamlit Frontend for Family Hub

The household dashboard: today's schedule, tasks, money, subscriptions,
family members, trip and party planning, and the notification log.

DESIGN PRINCIPLES:
1. Every screen reads from the entity store snapshot
2. Every write goes through the gateway and shows its SyncResult
3. Backend failures show as warnings, never as crashes
4. Derived numbers are recomputed from the snapshot on each run
"""

import asyncio
from datetime import date, datetime, timedelta
from decimal import Decimal

import streamlit as st

from family_hub.config import validate_all_settings
from family_hub.models import (
    BillingCycle,
    EventCategory,
    EventDraft,
    FamilyMemberDraft,
    NotificationPriority,
    PartyDraft,
    PartyType,
    SubscriptionCategory,
    SubscriptionDraft,
    SubscriptionStatus,
    SyncResult,
    TaskDraft,
    TaskPriority,
    TransactionDraft,
    TransactionType,
    TripDraft,
)
from family_hub.notifications import NotificationBuilder
from family_hub.orchestrator import AppContext, create_app_context
from family_hub.planning import is_generated_event
from family_hub.views import (
    build_household_report,
    calendar_month,
    email_report_link,
    member_activity,
    monthly_rollup,
    render_csv,
    subscription_costs,
    todays_events,
)


# Page configuration
st.set_page_config(
    page_title="Family Hub",
    page_icon="🏡",
    layout="wide",
    initial_sidebar_state="expanded",
)


@st.cache_resource
def get_event_loop() -> asyncio.AbstractEventLoop:
    """One loop for the whole session; the HTTP client is bound to it."""
    return asyncio.new_event_loop()


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = get_event_loop()
    asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)


@st.cache_resource
def get_context() -> AppContext:
    """Get or create the application context (cached)."""
    context = create_app_context()
    run_async(context.start(run_sweeper=False))
    return context


def show_result(result: SyncResult, success: str) -> None:
    if result.ok:
        st.success(success)
    else:
        st.error(f"Could not save: {result.error}")


def main():
    """Main application entry point."""
    context = get_context()
    context.notifications.sweep_expired()

    # Sidebar navigation
    st.sidebar.title("🏡 Family Hub")
    unread = context.notifications.unread_count
    st.sidebar.caption(f"🔔 {unread} unread notification{'s' if unread != 1 else ''}")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        [
            "🏠 Dashboard",
            "📅 Schedule",
            "✅ Tasks",
            "💰 Finances",
            "🔁 Subscriptions",
            "👪 Family",
            "🧳 Planning",
            "🔔 Notifications",
            "⚙️ Settings",
        ],
        index=0,
    )

    if st.sidebar.button("🔄 Refresh"):
        run_async(context.store.load())

    failed = context.store.snapshot.failed
    if failed:
        names = ", ".join(sorted(kind.resource for kind in failed))
        st.warning(f"Some data could not be loaded ({names}). Showing what is available.")

    if page == "🏠 Dashboard":
        render_dashboard_page(context)
    elif page == "📅 Schedule":
        render_schedule_page(context)
    elif page == "✅ Tasks":
        render_tasks_page(context)
    elif page == "💰 Finances":
        render_finances_page(context)
    elif page == "🔁 Subscriptions":
        render_subscriptions_page(context)
    elif page == "👪 Family":
        render_family_page(context)
    elif page == "🧳 Planning":
        render_planning_page(context)
    elif page == "🔔 Notifications":
        render_notifications_page(context)
    elif page == "⚙️ Settings":
        render_settings_page(context)


def render_dashboard_page(context: AppContext):
    """Render the overview page."""
    st.title("🏠 Family Dashboard")
    snapshot = context.store.snapshot
    today = date.today()

    rollup = monthly_rollup(snapshot.transactions, today)
    costs = subscription_costs(snapshot.subscriptions)
    open_tasks = sum(1 for t in snapshot.tasks if not t.completed)

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Open Tasks", open_tasks)
    col2.metric("Events Today", len(todays_events(snapshot, today)))
    col3.metric("Net This Month", f"${rollup.net:,.2f}")
    col4.metric("Subscriptions / Month", f"${costs.monthly_total:,.2f}")

    st.markdown("### Today's Schedule")
    events = todays_events(snapshot, today)
    if not events:
        st.info("Nothing scheduled today.")
    for event in events:
        st.markdown(f"**{event.time[:5]}** {event.title} ({event.member})")

    st.markdown("### Reports")
    report = build_household_report(snapshot, datetime.now())
    csv_col, email_col = st.columns(2)
    with csv_col:
        if st.download_button(
            "📄 Export CSV",
            data=render_csv(report),
            file_name=report.filename,
            mime="text/csv",
        ):
            run_async(context.notifications.add(
                NotificationBuilder.system("Report Downloaded", "CSV report downloaded successfully!")
            ))
    with email_col:
        st.link_button("✉️ Email Report", email_report_link(report))


def render_schedule_page(context: AppContext):
    """Render the month calendar and the add-event form."""
    st.title("📅 Schedule")
    snapshot = context.store.snapshot

    picked = st.date_input("Month", value=date.today())
    for day in calendar_month(snapshot, picked.year, picked.month):
        if not day.items:
            continue
        st.markdown(f"#### {day.date:%A %d %B}")
        for item in day.items:
            marker = "📌" if item.kind.value == "event" else ("✅" if item.completed else "⬜")
            planned = " · planned" if is_generated_event(item.title) else ""
            st.markdown(f"{marker} **{item.time}** {item.title} ({item.member}){planned}")

    st.markdown("---")
    with st.form("add_event", clear_on_submit=True):
        st.markdown("### Add Event")
        title = st.text_input("Title")
        event_date = st.date_input("Date", value=date.today())
        event_time = st.time_input("Time")
        member = st.text_input("Member")
        category = st.selectbox("Category", list(EventCategory), format_func=lambda c: c.value.title())
        description = st.text_area("Description")
        if st.form_submit_button("Add Event"):
            try:
                draft = EventDraft(
                    title=title,
                    date=event_date,
                    time=event_time.strftime("%H:%M"),
                    member=member,
                    category=category,
                    description=description or None,
                )
            except ValueError as e:
                st.error(f"Please check the form: {e}")
            else:
                show_result(run_async(context.gateway.add_event(draft)), "Event added")


def render_tasks_page(context: AppContext):
    """Render the task list."""
    st.title("✅ Tasks")

    for task in context.store.tasks:
        col1, col2 = st.columns([5, 1])
        with col1:
            done = st.checkbox(
                f"{task.title} · {task.assignee} · due {task.due_date:%d %b} · {task.priority.value}",
                value=task.completed,
                key=f"task_{task.id}",
            )
            if done != task.completed:
                show_result(run_async(context.gateway.toggle_task(task.id)), "Task updated")
        with col2:
            if st.button("Delete", key=f"delete_task_{task.id}"):
                show_result(run_async(context.gateway.delete_task(task.id)), "Task deleted")

    with st.form("add_task", clear_on_submit=True):
        st.markdown("### Add Task")
        title = st.text_input("Title")
        assignee = st.text_input("Assignee")
        due = st.date_input("Due", value=date.today() + timedelta(days=1))
        priority = st.selectbox("Priority", list(TaskPriority), index=1, format_func=lambda p: p.value.title())
        if st.form_submit_button("Add Task"):
            try:
                draft = TaskDraft(title=title, assignee=assignee, due_date=due, priority=priority)
            except ValueError as e:
                st.error(f"Please check the form: {e}")
            else:
                show_result(run_async(context.gateway.add_task(draft)), "Task added")


def render_finances_page(context: AppContext):
    """Render the monthly rollup and transaction list."""
    st.title("💰 Finances")
    snapshot = context.store.snapshot

    reference = st.date_input("Month", value=date.today())
    rollup = monthly_rollup(snapshot.transactions, reference)
    col1, col2, col3 = st.columns(3)
    col1.metric("Income", f"${rollup.income:,.2f}")
    col2.metric("Expenses", f"${rollup.expense:,.2f}")
    col3.metric("Net", f"${rollup.net:,.2f}")

    rows = [
        {
            "Date": t.date,
            "Type": t.type.value,
            "Category": t.category,
            "Amount": float(t.amount),
            "Member": t.member,
            "Description": t.description,
        }
        for t in snapshot.transactions
        if t.date.year == reference.year and t.date.month == reference.month
    ]
    st.dataframe(rows, use_container_width=True)

    with st.form("add_transaction", clear_on_submit=True):
        st.markdown("### Add Transaction")
        tx_type = st.radio("Type", list(TransactionType), format_func=lambda t: t.value.title(), horizontal=True)
        category = st.text_input("Category")
        amount = st.number_input("Amount", min_value=0.0, step=1.0, format="%.2f")
        tx_date = st.date_input("Date", value=date.today())
        member = st.text_input("Member")
        description = st.text_input("Description")
        if st.form_submit_button("Add Transaction"):
            try:
                draft = TransactionDraft(
                    type=tx_type,
                    category=category,
                    amount=Decimal(str(amount)),
                    description=description,
                    date=tx_date,
                    member=member,
                )
            except ValueError as e:
                st.error(f"Please check the form: {e}")
            else:
                show_result(run_async(context.gateway.add_transaction(draft)), "Transaction added")


def render_subscriptions_page(context: AppContext):
    """Render subscription costs and list."""
    st.title("🔁 Subscriptions")
    costs = subscription_costs(context.store.subscriptions)

    col1, col2, col3 = st.columns(3)
    col1.metric("Monthly", f"${costs.monthly_total:,.2f}")
    col2.metric("Yearly", f"${costs.yearly_total:,.2f}")
    col3.metric("Due", costs.due_count)

    for sub in context.store.subscriptions:
        col1, col2 = st.columns([5, 1])
        col1.markdown(
            f"**{sub.name}** ${sub.cost:.2f} / {sub.billing_cycle.value} · "
            f"{sub.status.value} · next {sub.next_payment:%d %b}"
        )
        if col2.button("Delete", key=f"delete_sub_{sub.id}"):
            show_result(run_async(context.gateway.delete_subscription(sub.id)), "Subscription deleted")

    with st.form("add_subscription", clear_on_submit=True):
        st.markdown("### Track Subscription")
        name = st.text_input("Name")
        cost = st.number_input("Cost", min_value=0.0, step=1.0, format="%.2f")
        cycle = st.selectbox("Billing Cycle", list(BillingCycle), index=1, format_func=lambda c: c.value.title())
        category = st.selectbox("Category", list(SubscriptionCategory), format_func=lambda c: c.value.title())
        status = st.selectbox("Status", list(SubscriptionStatus), format_func=lambda s: s.value.title())
        next_payment = st.date_input("Next Payment", value=date.today() + timedelta(days=30))
        if st.form_submit_button("Add Subscription"):
            try:
                draft = SubscriptionDraft(
                    name=name,
                    cost=Decimal(str(cost)),
                    billing_cycle=cycle,
                    category=category,
                    status=status,
                    next_payment=next_payment,
                )
            except ValueError as e:
                st.error(f"Please check the form: {e}")
            else:
                show_result(run_async(context.gateway.add_subscription(draft)), "Subscription added")


def render_family_page(context: AppContext):
    """Render members with their activity."""
    st.title("👪 Family")

    for activity in member_activity(context.store.snapshot, datetime.now()):
        col1, col2, col3 = st.columns([3, 1, 1])
        col1.markdown(f"**{activity.name}**")
        col2.metric("Open Tasks", activity.open_tasks)
        col3.metric("Upcoming", activity.upcoming_events)

    with st.form("add_member", clear_on_submit=True):
        st.markdown("### Add Family Member")
        name = st.text_input("Name")
        role = st.text_input("Role")
        email = st.text_input("Email")
        if st.form_submit_button("Add Member"):
            try:
                draft = FamilyMemberDraft(name=name, role=role, email=email or None)
            except ValueError as e:
                st.error(f"Please check the form: {e}")
            else:
                show_result(run_async(context.gateway.add_family_member(draft)), "Member added")


def render_planning_page(context: AppContext):
    """Render trips and parties. New ones are added to the calendar too."""
    st.title("🧳 Planning")
    trips = run_async(context.planning.list_trips())
    parties = run_async(context.planning.list_parties())

    tab_trips, tab_parties = st.tabs(["Trips", "Parties"])

    with tab_trips:
        for trip in trips:
            st.markdown(
                f"**{trip.title}** to {trip.destination} · "
                f"{trip.start_date:%d %b} - {trip.end_date:%d %b} · {trip.status.value}"
            )
        with st.form("add_trip", clear_on_submit=True):
            title = st.text_input("Title")
            destination = st.text_input("Destination")
            start = st.date_input("Start", value=date.today() + timedelta(days=7))
            end = st.date_input("End", value=date.today() + timedelta(days=10))
            organizer = st.text_input("Organizer")
            if st.form_submit_button("Add Trip"):
                try:
                    draft = TripDraft(
                        title=title,
                        destination=destination,
                        start_date=start,
                        end_date=end,
                        organizer=organizer,
                    )
                except ValueError as e:
                    st.error(f"Please check the form: {e}")
                else:
                    show_result(run_async(context.planning.add_trip(draft)), "Trip added to the calendar")

    with tab_parties:
        for party in parties:
            st.markdown(f"**{party.title}** · {party.date:%d %b} {party.time} · {party.location}")
        with st.form("add_party", clear_on_submit=True):
            title = st.text_input("Title")
            party_type = st.selectbox("Type", list(PartyType), format_func=lambda p: p.value.title())
            party_date = st.date_input("Date", value=date.today() + timedelta(days=14))
            party_time = st.time_input("Time")
            location = st.text_input("Location")
            organizer = st.text_input("Organizer")
            if st.form_submit_button("Add Party"):
                try:
                    draft = PartyDraft(
                        title=title,
                        type=party_type,
                        date=party_date,
                        time=party_time.strftime("%H:%M"),
                        location=location,
                        organizer=organizer,
                    )
                except ValueError as e:
                    st.error(f"Please check the form: {e}")
                else:
                    show_result(run_async(context.planning.add_party(draft)), "Party added to the calendar")


def render_notifications_page(context: AppContext):
    """Render the notification log and preferences."""
    st.title("🔔 Notifications")
    engine = context.notifications

    col1, col2 = st.columns(2)
    if col1.button("Mark all as read"):
        engine.mark_all_as_read()
    if col2.button("Clear all"):
        engine.clear_all()

    icons = {
        NotificationPriority.URGENT: "🚨",
        NotificationPriority.HIGH: "❗",
        NotificationPriority.MEDIUM: "🔔",
        NotificationPriority.LOW: "💬",
    }
    for n in engine.notifications:
        col1, col2 = st.columns([6, 1])
        weight = "" if n.read else "**"
        col1.markdown(f"{icons[n.priority]} {weight}{n.title}{weight}: {n.message}")
        if not n.read and col2.button("Read", key=f"read_{n.id}"):
            engine.mark_as_read(n.id)

    st.markdown("---")
    st.markdown("### Preferences")
    prefs = engine.preferences
    with st.form("preferences"):
        browser = st.checkbox("Device notifications", value=prefs.enable_browser_notifications)
        schedule = st.checkbox("Schedule reminders", value=prefs.enable_schedule_reminders)
        subscriptions = st.checkbox("Subscription alerts", value=prefs.enable_subscription_alerts)
        tasks = st.checkbox("Task reminders", value=prefs.enable_task_reminders)
        family = st.checkbox("Family updates", value=prefs.enable_family_updates)
        minutes = st.number_input("Remind minutes before", 0, 1440, prefs.reminder_minutes_before)
        quiet_start = st.text_input("Quiet hours start", prefs.quiet_hours_start)
        quiet_end = st.text_input("Quiet hours end", prefs.quiet_hours_end)
        if st.form_submit_button("Save"):
            try:
                run_async(engine.update_preferences(
                    enable_browser_notifications=browser,
                    enable_schedule_reminders=schedule,
                    enable_subscription_alerts=subscriptions,
                    enable_task_reminders=tasks,
                    enable_family_updates=family,
                    reminder_minutes_before=int(minutes),
                    quiet_hours_start=quiet_start,
                    quiet_hours_end=quiet_end,
                ))
                st.success("Preferences saved")
            except ValueError as e:
                st.error(f"Please check the preferences: {e}")

    push = context.push
    if push.is_subscribed:
        if st.button("Disable push notifications"):
            result = run_async(push.disable())
            st.info(result.message)
    elif st.button("Enable push notifications"):
        result = run_async(push.enable())
        if result.enabled:
            st.success(result.message)
        else:
            st.warning(result.message)


def render_settings_page(context: AppContext):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")
    st.markdown(f"Backend: `{context.backend.identity}`")

    status = validate_all_settings()
    sections = [
        ("Application", "app"),
        ("Household API", "api"),
        ("Google Sheets (Storage)", "google_sheets"),
        ("Push Notifications", "push"),
    ]
    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("### Recent Activity")
    for event in reversed(context.audit_logger.history[-20:]):
        st.caption(f"{event.timestamp:%H:%M:%S} · {event.event_type.value} · {event.description}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "Set `BACKEND` to `http`, `sheets` or `memory`; see `.env.example`."
    )


if __name__ == "__main__":
    main()
