from looma.game.modes.catalog import battle_config, build_session_config, solo_config

__all__ = ["battle_config", "build_session_config", "solo_config"]
