"""
Application events.

Views ask for a record to open in a new tab by sending ``open_tab`` with a
``TabRequest``; the shell that owns the tab strip connects a receiver.
"""
from dataclasses import dataclass
from typing import Optional

from blinker import Namespace

signals = Namespace()

open_tab = signals.signal('open-tab')


@dataclass(frozen=True)
class TabRequest:
    path: str
    title: str
    icon: Optional[str] = None
    force_new: bool = False
    navigate: bool = True


def request_tab(sender, path, title, **kwargs):
    request = TabRequest(path, title, **kwargs)
    open_tab.send(sender, request=request)
    return request


class TabManager:
    """Tab strip state; one tab per path unless a request forces a new one"""

    def __init__(self):
        self.tabs = []
        self.active = None
        open_tab.connect(self.on_open_tab)

    def on_open_tab(self, sender, request):
        tab = None
        if not request.force_new:
            tab = next((tab for tab in self.tabs if tab.path == request.path), None)
        if tab is None:
            tab = request
            self.tabs.append(tab)
        if request.navigate or self.active is None:
            self.active = tab

    def close_tab(self, path):
        self.tabs = [tab for tab in self.tabs if tab.path != path]
        if self.active is not None and self.active.path == path:
            self.active = self.tabs[-1] if self.tabs else None

    def disconnect(self):
        open_tab.disconnect(self.on_open_tab)
