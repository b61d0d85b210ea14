# hrcloud/notifications/email_templates.py
from markupsafe import escape

_STYLE = """
    body {{ font-family: Arial, sans-serif; line-height: 1.6; }}
    .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
    .header {{ background: {color}; color: white; padding: 20px; text-align: center; }}
    .content {{ padding: 30px; background: #f8f9fa; }}
    .button {{ display: inline-block; background: #007bff; color: white; padding: 12px 24px; text-decoration: none; border-radius: 4px; }}
    .footer {{ margin-top: 30px; padding-top: 20px; border-top: 1px solid #dee2e6; color: #6c757d; }}
"""


def _layout(color, heading, body, button_url, button_text):
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>{_STYLE.format(color=color)}</style>
    </head>
    <body>
        <div class="container">
            <div class="header">
                <h1>{heading}</h1>
            </div>
            <div class="content">
                {body}
                <p style="text-align: center; margin: 30px 0;">
                    <a href="{button_url}" class="button">{button_text}</a>
                </p>
            </div>
            <div class="footer">
                <p>You are receiving this email because you manage billing for this company.</p>
            </div>
        </div>
    </body>
    </html>
    """


class EmailTemplates:
    """Email template definitions"""

    @staticmethod
    def trial_expiring(company_name, days_remaining, trial_ends_at, billing_url):
        """Trial expiring warning, sent 7, 3 and 1 days out"""
        plural = "" if days_remaining == 1 else "s"
        if days_remaining == 1:
            subject = f"Last day of your {company_name} trial"
            color = "#dc3545"
            lead = "Your trial ends today! Upgrade now to avoid losing access."
        else:
            subject = f"Your {company_name} trial expires in {days_remaining} day{plural}"
            color = "#fd7e14" if days_remaining <= 3 else "#0d6efd"
            lead = "Upgrade now to keep all your data and continue using all features."

        body = f"""
                <p>Your <strong>{escape(company_name)}</strong> trial expires in
                <strong>{days_remaining} day{plural}</strong>
                ({trial_ends_at.strftime('%B %d, %Y')}).</p>
                <p>{lead}</p>
        """
        return subject, _layout(color, f"{days_remaining} day{plural} left", body, billing_url, "Upgrade Now")

    @staticmethod
    def trial_expired(company_name, billing_url):
        """First notice after the trial has expired"""
        subject = f"Your {company_name} trial has expired"
        body = f"""
                <p>Your <strong>{escape(company_name)}</strong> trial has expired.</p>
                <p>Your data is safe, but changes are disabled until you choose a plan.
                Upgrade to restore full access.</p>
        """
        return subject, _layout("#6c757d", "Trial Expired", body, billing_url, "Choose a Plan")
