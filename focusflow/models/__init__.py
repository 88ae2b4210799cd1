# -*- coding: utf-8 -*-
from focusflow.database import db

from .billing_event import BillingEvent
from .playlist import CustomPlaylistEntry
from .subscription import SubscriptionRecord
from .task import Task
from .user import User
