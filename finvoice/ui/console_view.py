"""Console rendering of capture state and pre-filled drafts."""

from rich.console import Console
from rich.table import Table

from ..models.capture import CaptureState, CaptureStateEvent
from ..models.forms import TransactionDraft
from ..models.transcription import FormType

STATE_TITLES = {
    CaptureState.IDLE: ("🎙️  Voice input", "bold blue"),
    CaptureState.LISTENING: ("🔴 Recording... (Ctrl+C to stop and process)", "bold red"),
    CaptureState.PROCESSING: ("⏳ Processing audio...", "bold cyan"),
    CaptureState.ERROR: ("⚠️  Error - run again to retry", "bold yellow"),
}


class ConsoleView:
    """Prints capture progress and the resulting form draft."""

    def __init__(self, console: Console = None):
        self.console = console or Console()

    def on_state(self, event: CaptureStateEvent) -> None:
        title, style = STATE_TITLES[event.current]
        self.console.print(title, style=style)
        if event.current is CaptureState.ERROR and event.error_message:
            self.console.print(f"   {event.error_message}", style="yellow")

    def show_draft(self, draft: TransactionDraft) -> None:
        self.console.print(f'📝 "{draft.transcript}"', style="green")

        table = Table(title=f"{draft.form_type.value.title()} draft")
        table.add_column("Field", style="bold")
        table.add_column("Value")
        table.add_column("Source", style="dim")

        rows = [
            ("subject", draft.subject),
            ("category", draft.category),
            ("amount", f"{draft.amount:,.0f}" if draft.amount is not None else None),
            ("description", draft.description or None),
            ("date", draft.date),
        ]
        if draft.form_type is FormType.EXPENSE:
            rows.append(("reimbursed", "TRUE" if draft.reimbursed else "FALSE"))

        for name, value in rows:
            source = "voice" if name in draft.filled_fields else "default"
            table.add_row(name, value if value is not None else "-", source)
        self.console.print(table)

        if draft.is_complete():
            self.console.print("✅ Ready to submit after review", style="green")
        else:
            self.console.print(f"❌ Missing: {', '.join(draft.missing_fields())}", style="red")
