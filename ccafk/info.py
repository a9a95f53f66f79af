__app_name__ = "Cookie Clicker AFK"
__package_name__ = "cookie-clicker-afk"
__description__ = "Unattended worker that keeps timestamped backups of an idle game save code"
__author__ = "Cookie Clicker AFK contributors"
__author_email__ = "maintainers@cookie-clicker-afk.invalid"
__author_url__ = "https://github.com/cookie-clicker-afk/cookie-clicker-afk"
__license__ = "GPLv3"
