"""HTML reminder and welcome emails sent through Flask-Mail."""
import logging

from flask_mail import Message
from markupsafe import escape

from . import app, mail

logger = logging.getLogger(__name__)

REMINDER_SUBJECT = "TrackFlow Daily Reminder"
DAILY_REMINDER_SUBJECT = "🔥 TrackFlow Daily Reminder - Keep Your Streak Going!"
WELCOME_SUBJECT = "🎉 Welcome to TrackFlow - Let's Build Better Habits Together!"

_LAYOUT = """\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <div style="background: linear-gradient(135deg, #8b5cf6, #06b6d4); padding: 20px; text-align: center;">
    <h1 style="color: white; margin: 0;">TrackFlow</h1>
    <p style="color: white; margin: 10px 0 0 0;">Daily Activity Tracker</p>
  </div>
  <div style="padding: 20px; background: #f8fafc;">
{content}
  </div>
  <div style="padding: 20px; text-align: center; color: #94a3b8; font-size: 12px;">
    <p>{footer}</p>
    <p><a href="{app_url}/settings" style="color: #8b5cf6;">Manage notification preferences</a></p>
  </div>
</div>
"""

_BUTTON = (
    '<div style="text-align: center; margin: 30px 0;">'
    '<a href="{href}" style="background: linear-gradient(135deg, #8b5cf6, #06b6d4); color: white; '
    'padding: 12px 24px; text-decoration: none; border-radius: 8px; display: inline-block;">{label}</a>'
    "</div>"
)


def _app_url():
    return app.config["APP_URL"].rstrip("/")


def _render(content, footer):
    return _LAYOUT.format(content=content, footer=footer, app_url=_app_url())


def reminder_html(message):
    content = (
        '<h2 style="color: #1e293b;">Daily Activity Reminder</h2>'
        f'<p style="color: #475569; font-size: 16px;">{escape(message)}</p>'
        + _BUTTON.format(href=f"{_app_url()}/log", label="Log Your Activities")
        + '<p style="color: #64748b; font-size: 14px;">'
        "Keep up the great work! Consistency is key to building lasting habits.</p>"
    )
    return _render(content, "You're receiving this because you subscribed to TrackFlow notifications.")


def daily_reminder_html(name):
    app_url = _app_url()
    content = (
        f'<h2 style="color: #1e293b;">Hi {escape(name)}! 👋</h2>'
        '<p style="color: #475569; font-size: 16px;">'
        "It's time for your daily check-in! Don't let your streak break - log your activities now.</p>"
        + _BUTTON.format(href=f"{app_url}/log", label="📝 Log Activities Now")
        + f'<p style="text-align: center;"><a href="{app_url}/analytics" style="color: #8b5cf6;">📊 View Analytics</a>'
        f' | <a href="{app_url}/dashboard" style="color: #8b5cf6;">🎯 Dashboard</a></p>'
    )
    return _render(content, "You're receiving this daily reminder because you subscribed to TrackFlow notifications.")


def welcome_html(name):
    app_url = _app_url()
    content = (
        f'<h2 style="color: #1e293b;">Hi {escape(name)}! 👋</h2>'
        '<p style="color: #475569; font-size: 16px;">'
        "Thank you for joining TrackFlow! Create your first activity, log your progress daily "
        "and watch your streaks grow.</p>"
        + _BUTTON.format(href=f"{app_url}/dashboard", label="🚀 Start Tracking Now")
    )
    return _render(content, "You're receiving this email because you created an account with TrackFlow.")


def reminder_message(recipient, message):
    return Message(subject=REMINDER_SUBJECT, recipients=[recipient], html=reminder_html(message))


def daily_reminder_message(recipient, name):
    return Message(subject=DAILY_REMINDER_SUBJECT, recipients=[recipient], html=daily_reminder_html(name))


def send_welcome_email(user):
    """Best effort: a failed welcome email never blocks registration."""
    if not app.config.get("MAIL_DEFAULT_SENDER"):
        logger.debug(f"Mail sender not configured, skipping welcome email for {user.email}")
        return False
    try:
        mail.send(Message(subject=WELCOME_SUBJECT, recipients=[user.email], html=welcome_html(user.name)))
        logger.info(f"Welcome email sent to {user.email}")
        return True
    except Exception as e:
        logger.error(f"Failed to send welcome email to {user.email}: {str(e)}")
        return False
