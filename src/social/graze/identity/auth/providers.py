"""OAuth 2.0 strategies for the supported identity providers."""

from typing import Any, Dict

from social.graze.identity.auth.profile import Profile
from social.graze.identity.auth.strategy import OAuth2Strategy


class GitHubStrategy(OAuth2Strategy):
    name = "github"
    authorization_url = "https://github.com/login/oauth/authorize"
    token_url = "https://github.com/login/oauth/access_token"
    profile_url = "https://api.github.com/user"
    default_scope = "read:user user:email"

    def parse_profile(self, data: Dict[str, Any]) -> Profile:
        # `name` is null for accounts that never set one
        return Profile(
            provider=self.name,
            id=data["id"],
            display_name=data.get("name") or data["login"],
            username=data.get("login"),
            emails=[data["email"]] if data.get("email") else [],
            photos=[data["avatar_url"]] if data.get("avatar_url") else [],
            raw=data,
        )


class GoogleStrategy(OAuth2Strategy):
    name = "google"
    authorization_url = "https://accounts.google.com/o/oauth2/v2/auth"
    token_url = "https://oauth2.googleapis.com/token"
    profile_url = "https://openidconnect.googleapis.com/v1/userinfo"
    default_scope = "openid email profile"

    def parse_profile(self, data: Dict[str, Any]) -> Profile:
        return Profile(
            provider=self.name,
            id=data["sub"],
            display_name=data.get("name") or data.get("email") or data["sub"],
            emails=[data["email"]] if data.get("email") else [],
            photos=[data["picture"]] if data.get("picture") else [],
            raw=data,
        )


class FacebookStrategy(OAuth2Strategy):
    name = "facebook"
    authorization_url = "https://www.facebook.com/v19.0/dialog/oauth"
    token_url = "https://graph.facebook.com/v19.0/oauth/access_token"
    profile_url = "https://graph.facebook.com/v19.0/me?fields=id,name,email,picture"
    default_scope = "email"

    def parse_profile(self, data: Dict[str, Any]) -> Profile:
        picture = (data.get("picture") or {}).get("data") or {}
        return Profile(
            provider=self.name,
            id=data["id"],
            display_name=data.get("name") or data["id"],
            emails=[data["email"]] if data.get("email") else [],
            photos=[picture["url"]] if picture.get("url") else [],
            raw=data,
        )


PROVIDER_STRATEGIES = {
    GitHubStrategy.name: GitHubStrategy,
    GoogleStrategy.name: GoogleStrategy,
    FacebookStrategy.name: FacebookStrategy,
}
