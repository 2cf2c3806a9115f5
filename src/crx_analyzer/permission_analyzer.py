"""
Permission Analyzer
Maps declared API and host permissions to a risk tier with an explanation
"""

from .models import PermissionFinding, RiskTier

ALL_URLS = '<all_urls>'

# Known permissions with fixed risk tiers
PERMISSION_TABLE = {
    'activeTab': (RiskTier.LOW, 'Access the current tab when the user interacts with the extension.'),
    'alarms': (RiskTier.LOW, 'Schedule code to run at specific times.'),
    'bookmarks': (RiskTier.MEDIUM, 'Read and modify browser bookmarks.'),
    'browsingData': (RiskTier.HIGH, 'Clear browsing data like cookies and history.'),
    'clipboardRead': (RiskTier.HIGH, 'Read data from the clipboard.'),
    'clipboardWrite': (RiskTier.MEDIUM, 'Write data to the clipboard.'),
    'cookies': (RiskTier.HIGH, 'Access and modify cookies for any website.'),
    'debugger': (RiskTier.CRITICAL, 'Use the browser debugger protocol, which allows full control over the browser.'),
    'desktopCapture': (RiskTier.HIGH, 'Capture screenshots of the desktop.'),
    'downloads': (RiskTier.MEDIUM, 'Manage browser downloads.'),
    'geolocation': (RiskTier.MEDIUM, "Access the user's physical location."),
    'history': (RiskTier.HIGH, "Read and modify the browser's history."),
    'identity': (RiskTier.MEDIUM, "Access the user's Google account identity."),
    'management': (RiskTier.HIGH, 'Manage other installed extensions and apps.'),
    'notifications': (RiskTier.LOW, 'Display desktop notifications.'),
    'proxy': (RiskTier.HIGH, "Manage the browser's proxy settings."),
    'sessions': (RiskTier.HIGH, 'Enumerate and restore open tabs and windows.'),
    'storage': (RiskTier.LOW, 'Store and retrieve data locally.'),
    'tabGroups': (RiskTier.LOW, 'Manage tab groups.'),
    'tabs': (RiskTier.MEDIUM, 'Access tab metadata like URL and title.'),
    'topSites': (RiskTier.LOW, "Access the list of the user's most visited websites."),
    'webNavigation': (RiskTier.MEDIUM, 'Receive notifications about the status of navigation requests.'),
    'webRequest': (RiskTier.HIGH, 'Intercept, block, or modify network requests.'),
    'webRequestBlocking': (RiskTier.HIGH, 'Block or modify network requests (requires webRequest).'),
    ALL_URLS: (RiskTier.CRITICAL, 'Full access to all websites the user visits.'),
}

DEFAULT_DESCRIPTION = 'Standard extension permission.'


def is_host_permission(permission):
    return '://' in permission or permission == ALL_URLS


def classify_permission(permission, table=PERMISSION_TABLE):
    """
    Classify a single permission string

    Lookup order: exact table entry, then host pattern, then generic low risk.

    Args:
        permission (str): API permission or host match pattern
        table (dict): permission -> (RiskTier, description)

    Returns:
        PermissionFinding: Tier and description for the permission
    """
    if permission in table:
        risk, description = table[permission]
        return PermissionFinding(permission=permission, risk=risk, description=description)

    if is_host_permission(permission):
        if permission == ALL_URLS:
            return PermissionFinding(permission=permission, risk=RiskTier.CRITICAL,
                                     description='Access to data on all websites.')
        return PermissionFinding(permission=permission, risk=RiskTier.HIGH,
                                 description=f'Access to data on {permission}.')

    return PermissionFinding(permission=permission, risk=RiskTier.LOW, description=DEFAULT_DESCRIPTION)


def analyze_permissions(permissions, host_permissions=(), table=PERMISSION_TABLE):
    """Classify the de-duplicated union of permissions and host_permissions, first-seen order"""
    unique = list(dict.fromkeys(list(permissions) + list(host_permissions)))
    return [classify_permission(permission, table) for permission in unique]
