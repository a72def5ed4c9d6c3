"""Socket.IO event names shared by the handlers and the tests."""

# client -> server
ROOM_JOIN = "room:join"
ROOM_LEAVE = "room:leave"
ROOM_KICK = "room:kick"
ROOM_ADD_BOT = "room:add_bot"
ROOM_SETTINGS = "room:settings"
GAME_START = "game:start"
GAME_CHOOSE_WORD = "game:choose_word"
GAME_RESET = "game:reset"
GUESS_SUBMIT = "guess:submit"
CHAT_MESSAGE = "chat:message"

# server -> client
ROOM_STATE = "room:state"
ROOM_KICKED = "room:kicked"
ROOM_ERROR = "room:error"
GAME_ERROR = "game:error"

# camelCase payload keys accepted by room:settings
SETTINGS_KEYS = {
    "timePerRound": "time_per_round",
    "rounds": "rounds",
    "wordCount": "word_count",
    "hintRevealTime": "hint_reveal_time",
    "gameMode": "game_mode",
    "difficulty": "difficulty",
    "isPublic": "is_public",
    "allowJoinViaLink": "allow_join_via_link",
    "animationsEnabled": "animations_enabled",
    "customWords": "custom_words",
}
