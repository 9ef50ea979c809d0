import smtplib
from email.message import EmailMessage


class Mailer:
    def __init__(self, host: str | None, port: int = 587, username: str | None = None,
                 password: str | None = None, sender: str | None = None):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender or username

    @property
    def configured(self) -> bool:
        return bool(self.host and self.sender)

    def send(self, to: str, subject: str, body: str) -> bool:
        if not (self.configured and to):
            return False
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(body)

        with smtplib.SMTP(self.host, self.port, timeout=15) as server:
            server.starttls()
            if self.username and self.password:
                server.login(self.username, self.password)
            server.send_message(msg)
        return True
