"""Terminal-safe output with ASCII fallbacks for Unicode icons.

Detects the terminal encoding so status icons used by the CLI and the
verbose diagnostics degrade to ASCII on terminals that can't print them.
"""
import sys
import locale


# Unicode to ASCII icon mapping
ICON_MAP = {
    # Status icons
    '✓': '[OK]',
    '✅': '[OK]',
    '✗': '[FAIL]',
    '❌': '[FAIL]',
    '⚠️': '[WARN]',
    '⚠': '[WARN]',
    '↩': '[ROLLBACK]',
    '⏭': '[SKIP]',

    # Progress/action icons
    '→': '->',
    '…': '...',
    '•': '*',

    # Domain icons
    '🩺': '[DOCTOR]',
    '🔍': '[SEARCH]',
    '🔄': '[DUP]',
    '📡': '[IPC]',
    '💾': '[BACKUP]',
    '🧪': '[TEST]',
    '🏗️': '[BUILD]',
    '📊': '[STATS]',
}


def detect_terminal_encoding() -> str:
    """Detect the terminal's encoding capability.

    Returns:
        str: Terminal encoding ('utf-8', 'cp1252', 'ascii', etc.)
    """
    if getattr(sys.stdout, 'encoding', None):
        return sys.stdout.encoding.lower()

    encoding = locale.getpreferredencoding(False)
    if encoding:
        return encoding.lower()
    return 'ascii'


def is_utf8_capable() -> bool:
    return detect_terminal_encoding().replace('_', '-') in ('utf-8', 'utf8')


def sanitize_for_terminal(text: str) -> str:
    """Replace Unicode icons with ASCII equivalents if terminal doesn't support UTF-8.

    Args:
        text: Text potentially containing Unicode icons

    Returns:
        str: Sanitized text safe for current terminal
    """
    if is_utf8_capable():
        return text

    # Longest keys first so multi-codepoint icons win over their prefixes
    for unicode_char in sorted(ICON_MAP, key=len, reverse=True):
        text = text.replace(unicode_char, ICON_MAP[unicode_char])
    return text
