"""
Page objects for the case dashboard.

Only the pages the session bootstrap drives live here: the login form and
the role dashboards it lands on.
"""

from casedesk.pages.base_page import BasePage
from casedesk.pages.dashboard_page import DashboardPage
from casedesk.pages.login_page import LoginPage

__all__ = ["BasePage", "DashboardPage", "LoginPage"]
