from nicegui import ui, app

from config import AppConfig, build_tracker
from drink_manager import DrinkTracker
from reminder_scheduler import ReminderRequest, ReminderScheduler
from time_service import time_service

POSSIBLE_AMOUNTS = [50, 100, 150, 200, 250, 300, 330, 400, 500]
DEFAULT_AMOUNT = 250


class DrinkTrackerApp:
    def __init__(self, config: AppConfig):
        self.config = config

        self.scheduler = ReminderScheduler(
            callback=self._deliver_reminder,
            check_interval_seconds=config.reminder_check_seconds,
        )
        self.tracker: DrinkTracker = build_tracker(config, scheduler=self.scheduler)
        self.tracker.subscribe(self._on_tracker_changed)

        self.selected_amount = DEFAULT_AMOUNT

        # Reactive UI data - bound labels update when these change
        self.ui_data = {
            'amount_display': '',
            'target_display': '',
            'progress': 0.0,
            'last_reminder': '',
        }
        self.settings = {
            'target_amount': self.tracker.target_amount,
            'notifications': self.tracker.notifications.permissions_granted,
            'health_sync': self.tracker.health_sync_enabled,
        }

        self.history_chart = None
        self._update_ui_data()

    def _update_ui_data(self):
        tracker = self.tracker
        goal_mark = " 🎉" if tracker.goal_reached else ""
        self.ui_data['amount_display'] = f"{tracker.current_amount} ml"
        self.ui_data['target_display'] = f"Goal: {tracker.target_amount} ml{goal_mark}"
        self.ui_data['progress'] = min(tracker.progress, 1.0)

    def _on_tracker_changed(self, tracker: DrinkTracker):
        self._update_ui_data()
        try:
            self.entry_list.refresh()
            self.history_list.refresh()
        except Exception as e:
            # No page has been rendered yet
            print(f"Entry list not refreshed: {e}")
        self._update_history_chart()

    async def initialize_app(self):
        """Sync time, start reminders and run the first rollover check"""
        if self.config.time_sync_enabled and not time_service.last_sync_time:
            print("🕐 Syncing time with API...")
            await time_service.sync_time()

        self.tracker.on_app_active()
        self.tracker.update_notifications()
        await self.scheduler.start()

        print("💧 Drink tracker initialized:")
        print(f"   📊 Target: {self.tracker.target_amount}ml, Current: {self.tracker.current_amount}ml")
        print(f"   🔔 Pending reminders: {len(self.scheduler.pending)}")
        print(f"   ❤️ Health sync: {'on' if self.tracker.health_sync_enabled else 'off'}")

    async def shutdown(self):
        await self.scheduler.stop()
        print("✅ Shutdown complete")

    async def _deliver_reminder(self, request: ReminderRequest):
        self.ui_data['last_reminder'] = f"{self.tracker.clock().strftime('%H:%M')} {request.title}: {request.body}"
        await self._show_toast(f"{request.title}: {request.body}", 'info')

    async def _show_toast(self, message: str, type_: str = 'info'):
        """Show a toast notification - safe for background tasks"""
        try:
            ui.notify(message, type=type_, position='top-right', timeout=5000, close_button=True)
        except RuntimeError as e:
            # Called from background task - just log to console
            print(f"TOAST [{type_.upper()}]: {message} ({e})")

    def on_add_drink(self):
        entry = self.tracker.add_drink(self.selected_amount)
        if entry and self.tracker.goal_reached:
            ui.notify('Daily goal reached! 🎉', type='positive')

    def on_delete_drink(self, entry_id: str):
        self.tracker.delete_drink(entry_id)

    def on_update_time(self, entry_id: str, value: str):
        entry = self.tracker.get_entry(entry_id)
        if entry is None or not value:
            return
        try:
            hour, minute = (int(part) for part in value.split(':'))
        except ValueError:
            ui.notify(f"Invalid time: {value}", type='warning')
            return
        self.tracker.update_drink_entry(entry_id, entry.timestamp.replace(hour=hour, minute=minute))

    def _confirm_time(self, menu, entry_id: str, value: str):
        menu.close()
        self.on_update_time(entry_id, value)

    def share_message(self) -> str:
        return f"I've already had {self.tracker.current_amount} ml of water today! 💧"

    def on_share(self):
        message = self.share_message()
        ui.clipboard.write(message)
        ui.notify(f"Copied: {message}", type='positive')

    def on_save_settings(self, dialog):
        tracker = self.tracker
        target = int(self.settings['target_amount'] or tracker.target_amount)
        target = max(self.config.target_min_ml, min(self.config.target_max_ml, target))

        if target != tracker.target_amount:
            tracker.set_target_amount(target)
        if bool(self.settings['health_sync']) != tracker.health_sync_enabled:
            tracker.set_health_sync_enabled(bool(self.settings['health_sync']))
        if tracker.notifications is not None:
            tracker.notifications.request_authorization(
                bool(self.settings['notifications']), tracker.current_amount, tracker.target_amount
            )
        dialog.close()
        ui.notify('Settings saved', type='positive')

    def _history_chart_options(self) -> dict:
        days = self.tracker.history.last_7_days(self.tracker.current_amount)
        target = self.tracker.target_amount
        return {
            'xAxis': {'type': 'category', 'data': [day.date.strftime('%a') for day in days]},
            'yAxis': {'type': 'value', 'name': 'ml'},
            'series': [{
                'type': 'line',
                'smooth': True,
                'data': [
                    {'value': day.amount, 'itemStyle': {'color': 'green' if day.amount >= target else 'red'}}
                    for day in days
                ],
                'markLine': {
                    'symbol': 'none',
                    'lineStyle': {'type': 'dashed'},
                    'data': [{'yAxis': target, 'name': f'Goal: {target} ml'}],
                },
            }],
        }

    def _update_history_chart(self):
        if self.history_chart is None:
            return
        try:
            self.history_chart.options.update(self._history_chart_options())
            self.history_chart.update()
        except Exception as e:
            print(f"Error updating history chart: {e}")

    @ui.refreshable
    def entry_list(self):
        entries = list(reversed(self.tracker.drink_entries))
        if not entries:
            ui.label('No drinks yet today').classes('text-gray-500')
            return
        for entry in entries:
            with ui.row().classes('w-full items-center justify-between'):
                ui.label(f"{entry.amount} ml")
                with ui.row().classes('items-center gap-1'):
                    with ui.input(value=entry.timestamp.strftime('%H:%M')).props('dense borderless').classes('w-20') as time_input:
                        with ui.menu().props('no-parent-event') as menu:
                            with ui.time(value=entry.timestamp.strftime('%H:%M')) as picker:
                                with ui.row().classes('justify-end'):
                                    ui.button('Done', on_click=lambda e, p=picker, m=menu, i=entry.id:
                                              self._confirm_time(m, i, p.value)).props('flat')
                        with time_input.add_slot('append'):
                            ui.icon('schedule').on('click', menu.open).classes('cursor-pointer')
                    ui.button(icon='delete', on_click=lambda e, i=entry.id: self.on_delete_drink(i)).props('flat round color=red')

    @ui.refreshable
    def history_list(self):
        target = self.tracker.target_amount
        today = self.tracker.clock().date()
        for day in self.tracker.history.full_list_with_today_entry(self.tracker.current_amount):
            with ui.row().classes('w-full justify-between'):
                if day.date == today:
                    ui.label(f"{day.date.strftime('%d %b %Y')}  Today")
                else:
                    color = 'text-green-600 font-bold' if day.amount >= target else 'text-red-600'
                    ui.label(day.date.strftime('%d %b %Y')).classes(color)
                ui.label(f"{day.amount} ml").classes('text-blue-600 font-bold')

    def create_ui(self):
        """Create the main UI"""
        ui.page_title('Drink Tracker')

        with ui.dialog() as history_dialog, ui.card().classes('w-full max-w-xl'):
            ui.label('📈 History').classes('text-xl font-semibold')
            self.history_chart = ui.echart(self._history_chart_options()).classes('w-full h-64')
            self.history_list()
            ui.button('Close', on_click=history_dialog.close).props('flat')

        with ui.dialog() as settings_dialog, ui.card().classes('w-full max-w-md'):
            ui.label('⚙️ Settings').classes('text-xl font-semibold')
            ui.switch('Notifications').bind_value(self.settings, 'notifications')
            ui.switch('Sync with health records').bind_value(self.settings, 'health_sync')
            ui.number(
                'Target (ml)',
                min=self.config.target_min_ml,
                max=self.config.target_max_ml,
                step=self.config.target_step_ml,
                format='%d',
            ).bind_value(self.settings, 'target_amount')
            with ui.row().classes('w-full justify-end'):
                ui.button('Cancel', on_click=settings_dialog.close).props('flat')
                ui.button('Save', on_click=lambda: self.on_save_settings(settings_dialog))

        def open_settings():
            self.settings['target_amount'] = self.tracker.target_amount
            self.settings['notifications'] = self.tracker.notifications.permissions_granted
            self.settings['health_sync'] = self.tracker.health_sync_enabled
            settings_dialog.open()

        def open_history():
            self.history_list.refresh()
            self._update_history_chart()
            history_dialog.open()

        with ui.card().classes('w-full max-w-xl mx-auto p-6'):
            with ui.row().classes('w-full items-center justify-between'):
                ui.button(icon='list', on_click=open_history).props('flat round')
                ui.label('💧 Drink Tracker').classes('text-2xl font-bold')
                with ui.row().classes('gap-1'):
                    ui.button(icon='share', on_click=self.on_share).props('flat round')
                    ui.button(icon='settings', on_click=open_settings).props('flat round')

            # Glass
            with ui.column().classes('w-full items-center my-4'):
                ui.label().classes('text-3xl text-blue-600').bind_text_from(self.ui_data, 'amount_display')
                ui.linear_progress(show_value=False).props('size=24px rounded').classes('w-full') \
                    .bind_value_from(self.ui_data, 'progress')
                ui.label().classes('text-sm text-gray-600').bind_text_from(self.ui_data, 'target_display')

            # Amount picker
            with ui.row().classes('w-full items-center gap-2'):
                ui.select(
                    {amount: f"{amount} ml" for amount in POSSIBLE_AMOUNTS},
                    value=self.selected_amount,
                ).bind_value(self, 'selected_amount').classes('flex-1')
                ui.button('Add', on_click=self.on_add_drink).classes('flex-1')

            ui.separator().classes('my-2')
            self.entry_list()

            ui.label().classes('text-xs text-gray-500 mt-2').bind_text_from(self.ui_data, 'last_reminder')

        # Catch midnight while the page stays open
        ui.timer(self.config.rollover_check_seconds, self.tracker.reset_if_needed)


# Global app instance
drink_app = DrinkTrackerApp(AppConfig.from_env())


@ui.page('/')
async def index():
    drink_app.create_ui()


async def on_startup():
    try:
        await drink_app.initialize_app()
    except Exception as e:
        print(f"❌ Error initializing app: {e}")


async def on_shutdown():
    try:
        await drink_app.shutdown()
    except Exception as e:
        print(f"Error during shutdown: {e}")


def on_connect():
    # A (re)opened page counts as the app becoming active
    drink_app.tracker.on_app_active()


app.on_startup(on_startup)
app.on_shutdown(on_shutdown)
app.on_connect(on_connect)

if __name__ in {"__main__", "__mp_main__"}:
    ui.run(
        title='Drink Tracker',
        port=drink_app.config.port,
        show=True,
        reload=False
    )
