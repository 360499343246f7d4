# walksense/signals.py
from blinker import Namespace

walksense_signals = Namespace()

# Sent with the guardian User once a registration has been committed
user_registered = walksense_signals.signal('user-registered')
