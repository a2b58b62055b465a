from .portfolio import Portfolio
from .holding import Holding
from .industry import Industry
from .news_article import NewsArticle
from .subscription import Subscription
from .email_log import EmailLog

__all__ = (
    "Portfolio",
    "Holding",
    "Industry",
    "NewsArticle",
    "Subscription",
    "EmailLog",
)
