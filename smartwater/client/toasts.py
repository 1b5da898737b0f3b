"""User-facing notifications raised by the view models"""
from dataclasses import dataclass


@dataclass
class Toast:
    title: str
    description: str = ''
    variant: str = 'default'  # 'default' | 'destructive' | 'warning'


class Toaster:
    """Collects toasts; a UI drains ``toasts`` or passes a ``listener``"""

    def __init__(self, listener=None):
        self.toasts = []
        self.listener = listener

    def toast(self, title, description='', variant='default'):
        item = Toast(title, description, variant)
        self.toasts.append(item)
        if self.listener:
            self.listener(item)
        return item

    def success(self, title, description=''):
        return self.toast(title, description)

    def error(self, title, error):
        """Destructive toast; API failures read "<status>: <body>" """
        return self.toast(title, str(error), 'destructive')

    @property
    def last(self):
        return self.toasts[-1] if self.toasts else None

    def clear(self):
        self.toasts.clear()
