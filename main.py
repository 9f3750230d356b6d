import logging
import math
import sys

import pygame

from database import GameDatabase
from events import CardFlipped, CardHidden, CardMatched, DealCompleted, DealStarted, GameFinished, TurnChanged
from game import MemoryGame
from highscores import HighscoreStore
from settings import format_time, game_config, load_settings, validate_settings
from shared.models import DIFFICULTIES, PlayerConfig

logger = logging.getLogger(__name__)

# Memory optimization - limit pygame features we don't need
pygame.display.init()
pygame.font.init()

# Colors
WHITE = (255, 255, 255)
BLACK = (0, 0, 0)
GRAY = (200, 200, 200)
BLUE = (0, 100, 255)
GREEN = (0, 200, 0)
CARD_BACK_COLOR = (50, 50, 200)
CARD_FRONT_COLOR = (220, 220, 255)
CARD_MATCHED_COLOR = (200, 255, 200)

# Fonts
FONT_SMALL = pygame.font.SysFont('Arial', 20)
FONT_MEDIUM = pygame.font.SysFont('Arial', 30)
FONT_LARGE = pygame.font.SysFont('Arial', 40)
FONT_CARD = pygame.font.SysFont('Arial', 16, bold=True)

FPS = 60
CARD_MARGIN = 8
FLIP_DURATION = 0.3  # seconds
MAX_PLAYERS = 4


class GameGUI:
    """Graphical user interface for the memory card game."""

    def __init__(self, game, settings):
        """Initialize the game GUI."""
        self.game = game
        self.settings = settings
        self.clock = pygame.time.Clock()
        self.screen = None
        self.width = 900
        self.height = 640
        self.board_margin_top = 80
        self.board_margin_left = 0
        self.card_width = 70
        self.card_height = 80
        self.players = [PlayerConfig("Player 1")]
        self.text_cache = {}

        # Animation state, all driven by engine events
        self.dealt = set()
        self.flipping_cards = {}  # position -> (start ticks, flipping up)
        self.match_animation = {}  # position -> start ticks
        self.message = ""

        game.events.subscribe(DealStarted, lambda e: self.dealt.discard(e.position))
        game.events.subscribe(DealCompleted, lambda e: self.dealt.add(e.position))
        game.events.subscribe(CardFlipped, lambda e: self.start_flip(e.position, True))
        game.events.subscribe(CardHidden, lambda e: self.start_flip(e.position, False))
        game.events.subscribe(CardMatched, self.on_card_matched)
        game.events.subscribe(TurnChanged, lambda e: self.show_message(f"{e.player.name}'s turn"))

    def setup_window(self):
        """Set up the game window."""
        self.screen = pygame.display.set_mode((self.width, self.height))
        pygame.display.set_caption("Memory Card Game")

    def render_text(self, font, text, color):
        """Render and cache text to avoid recreating text surfaces."""
        cache_key = (font, text, color)
        if cache_key not in self.text_cache:
            if len(self.text_cache) > 200:
                self.text_cache.clear()
            self.text_cache[cache_key] = font.render(text, True, color)
        return self.text_cache[cache_key]

    def blit_centered(self, surface, y):
        self.screen.blit(surface, (self.width // 2 - surface.get_width() // 2, y))

    def draw_button(self, rect, label, color, mouse_pos):
        hover = rect.collidepoint(mouse_pos)
        pygame.draw.rect(self.screen, color if hover else GRAY, rect, 0, 10)
        pygame.draw.rect(self.screen, WHITE, rect, 2, 10)
        text = self.render_text(FONT_MEDIUM, label, WHITE if hover else BLACK)
        self.screen.blit(text, (rect.centerx - text.get_width() // 2, rect.centery - text.get_height() // 2))

    def show_message(self, message):
        self.message = message

    def start_flip(self, position, flipping_up):
        self.flipping_cards[position] = (pygame.time.get_ticks(), flipping_up)

    def on_card_matched(self, event):
        for position in event.positions:
            self.match_animation[position] = pygame.time.get_ticks()

    def show_start_screen(self):
        """
        Show the start screen: the player list and the difficulty buttons.

        Returns:
            The selected difficulty, None to quit
        """
        selected = self.settings["difficulty"]
        button_width, button_height = 200, 50
        difficulty_rects = {
            name: pygame.Rect(self.width // 2 - button_width // 2, 330 + i * 60, button_width, button_height)
            for i, name in enumerate(DIFFICULTIES)
        }
        add_rect = pygame.Rect(self.width // 2 + 160, 120, 140, 40)
        scores_rect = pygame.Rect(self.width // 2 + 160, 170, 140, 40)

        while True:
            mouse_pos = pygame.mouse.get_pos()
            clicked = False
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    return None
                elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                    return None
                elif event.type == pygame.KEYDOWN and event.key == pygame.K_RETURN:
                    return selected
                elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                    clicked = True

            self.screen.fill(WHITE)
            self.blit_centered(FONT_LARGE.render("MEMORY CARD GAME", True, BLUE), 30)

            # Player list: click a row to switch between human and computer
            player_rects = []
            for i, player in enumerate(self.players):
                rect = pygame.Rect(self.width // 2 - 250, 120 + i * 45, 380, 40)
                player_rects.append(rect)
                kind = "Human" if player.is_human else "Computer"
                pygame.draw.rect(self.screen, CARD_FRONT_COLOR, rect, 0, 5)
                self.screen.blit(self.render_text(FONT_SMALL, f"{player.name} ({kind})", BLACK),
                                 (rect.x + 10, rect.y + 10))

            if len(self.players) < MAX_PLAYERS:
                self.draw_button(add_rect, "+ Player", GREEN, mouse_pos)
            self.draw_button(scores_rect, "Scores", GREEN, mouse_pos)
            for name, rect in difficulty_rects.items():
                # Enter starts the preselected difficulty
                self.draw_button(rect, name.title(), GREEN if name == selected else BLUE, mouse_pos)
                if name == selected:
                    pygame.draw.rect(self.screen, GREEN, rect.inflate(8, 8), 3, 12)

            if clicked:
                for i, rect in enumerate(player_rects):
                    if rect.collidepoint(mouse_pos):
                        self.toggle_ai(i)
                if add_rect.collidepoint(mouse_pos) and len(self.players) < MAX_PLAYERS:
                    self.players.append(PlayerConfig(f"Player {len(self.players) + 1}"))
                if scores_rect.collidepoint(mouse_pos):
                    self.show_highscores()
                for name, rect in difficulty_rects.items():
                    if rect.collidepoint(mouse_pos):
                        return name

            pygame.display.flip()
            self.clock.tick(FPS)

    def toggle_ai(self, index):
        player = self.players[index]
        if player.is_human:
            self.players[index] = PlayerConfig(f"Computer {index + 1}", is_human=False)
        else:
            self.players[index] = PlayerConfig(f"Player {index + 1}", is_human=True)

    def layout_board(self, columns, rows):
        """Size the cards so the grid fits the window."""
        max_card_width = (self.width - CARD_MARGIN * (columns + 1)) // columns
        max_card_height = (self.height - self.board_margin_top - CARD_MARGIN * (rows + 1)) // rows
        self.card_width = min(max_card_width, int(max_card_height * 0.8))
        self.card_height = int(self.card_width * 1.25)
        self.board_margin_left = (self.width - (columns * self.card_width + (columns - 1) * CARD_MARGIN)) // 2

    def get_card_rect(self, position):
        """Get the rectangle for the card at a board position."""
        row, col = divmod(position, self.game.board.columns)
        x = self.board_margin_left + col * (self.card_width + CARD_MARGIN)
        y = self.board_margin_top + row * (self.card_height + CARD_MARGIN)
        return pygame.Rect(x, y, self.card_width, self.card_height)

    def get_card_at_pos(self, pos):
        """Get the board position under a screen position."""
        for card in self.game.board.cards:
            if self.get_card_rect(card.position).collidepoint(pos):
                return card.position
        return None

    def draw_card(self, card, rect, show_front):
        if card.is_matched:
            pygame.draw.rect(self.screen, CARD_MATCHED_COLOR, rect, 0, 5)
            pygame.draw.rect(self.screen, GREEN, rect, 2, 5)
        elif show_front:
            pygame.draw.rect(self.screen, CARD_FRONT_COLOR, rect, 0, 5)
            pygame.draw.rect(self.screen, BLUE, rect, 2, 5)
        else:
            pygame.draw.rect(self.screen, CARD_BACK_COLOR, rect, 0, 5)
            pygame.draw.rect(self.screen, BLUE, rect, 2, 5)
            return

        if rect.width > self.card_width * 0.3:
            text = self.render_text(FONT_CARD, card.symbol, GREEN if card.is_matched else BLACK)
            self.screen.blit(text, (rect.centerx - text.get_width() // 2, rect.centery - text.get_height() // 2))

    def draw_board(self):
        """Draw the cards that are on the table."""
        now = pygame.time.get_ticks()
        for card in self.game.board.cards:
            if card.position not in self.dealt:
                continue

            # Matched cards pulse once, then leave the table
            if card.position in self.match_animation:
                elapsed = (now - self.match_animation[card.position]) / 1000.0
                if elapsed > 0.5:
                    continue
                rect = self.get_card_rect(card.position).inflate(int(self.card_width * 0.2 * math.sin(elapsed * 2 * math.pi)), 0)
                self.draw_card(card, rect, True)
                continue

            rect = self.get_card_rect(card.position)
            show_front = card.is_face_up
            if card.position in self.flipping_cards:
                start, flipping_up = self.flipping_cards[card.position]
                progress = (now - start) / 1000.0 / FLIP_DURATION
                if progress >= 1:
                    del self.flipping_cards[card.position]
                else:
                    # Simulate a 3D flip by changing the width
                    width = int(abs(self.card_width * (0.5 - progress) * 2))
                    rect = pygame.Rect(rect.centerx - width // 2, rect.y, width, rect.height)
                    show_front = (progress >= 0.5) == flipping_up
            self.draw_card(card, rect, show_front)

    def draw_ui(self):
        """Draw the current player, the score and the play time."""
        player = self.game.current_player
        if player is not None:
            header = f"Score {player.name}: {player.score}"
            self.screen.blit(self.render_text(FONT_MEDIUM, header, BLUE), (20, 20))
        time_text = self.render_text(FONT_MEDIUM, format_time(self.game.elapsed), BLACK)
        self.screen.blit(time_text, (self.width - time_text.get_width() - 20, 20))
        if self.message:
            self.blit_centered(self.render_text(FONT_SMALL, self.message, GRAY), 50)

    def run_game(self, difficulty):
        """
        Play one game.

        Returns:
            True when the board was cleared, False when the player gave up
        """
        portrait = self.height > self.width
        config = game_config(self.settings, list(self.players), difficulty, portrait=portrait)
        self.settings["difficulty"] = difficulty
        self.dealt.clear()
        self.flipping_cards.clear()
        self.match_animation.clear()
        self.layout_board(config.columns, config.rows)
        self.game.start_game(config)

        while not self.game.is_finished:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    sys.exit()
                elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                    logger.info("Game abandoned")
                    return False
                elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                    position = self.get_card_at_pos(event.pos)
                    if position is not None:
                        self.game.flip(position)

            self.game.update()

            self.screen.fill(WHITE)
            self.draw_ui()
            self.draw_board()
            pygame.display.flip()
            self.clock.tick(FPS)

        return True

    def enter_highscore(self):
        """Ask for the name to put into the highscore table."""
        result = self.game.result
        name = result.winner_name

        while True:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    sys.exit()
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_RETURN:
                        self.game.submit_highscore(name)
                        return
                    elif event.key == pygame.K_ESCAPE:
                        return
                    elif event.key == pygame.K_BACKSPACE:
                        name = name[:-1]
                    elif event.unicode and event.unicode.isprintable() and len(name) < 20:
                        name += event.unicode

            self.screen.fill(WHITE)
            self.blit_centered(FONT_LARGE.render(f"{result.winner_name} won!", True, BLUE), 80)
            lines = [
                f"Your Score: {result.score}",
                f"Your Time: {format_time(result.duration_seconds)}",
                f"Used Moves: {result.moves}",
            ]
            for i, line in enumerate(lines):
                self.blit_centered(self.render_text(FONT_MEDIUM, line, BLACK), 170 + i * 40)

            input_rect = pygame.Rect(self.width // 2 - 140, 330, 280, 50)
            pygame.draw.rect(self.screen, CARD_FRONT_COLOR, input_rect, 0, 5)
            pygame.draw.rect(self.screen, BLUE, input_rect, 2, 5)
            self.screen.blit(FONT_MEDIUM.render(name, True, BLACK), (input_rect.x + 10, input_rect.y + 8))
            self.blit_centered(self.render_text(FONT_SMALL, "Press Enter to save, Escape to skip", GRAY), 400)

            pygame.display.flip()
            self.clock.tick(FPS)

    def show_highscores(self):
        """Show the highscore table until a key or mouse button is pressed."""
        while True:
            for event in pygame.event.get():
                if event.type in (pygame.QUIT, pygame.KEYDOWN, pygame.MOUSEBUTTONDOWN):
                    return

            self.screen.fill(WHITE)
            self.blit_centered(FONT_LARGE.render("HIGH SCORES", True, BLUE), 40)
            entries = self.game.highscores.get_high_scores()
            if not entries:
                self.blit_centered(self.render_text(FONT_MEDIUM, "No high scores yet!", BLACK), 140)
            for i, entry in enumerate(entries):
                line = f"{i + 1}. {entry.score:>3}  {entry.name}"
                self.screen.blit(self.render_text(FONT_MEDIUM, line, BLACK), (self.width // 2 - 150, 110 + i * 40))

            pygame.display.flip()
            self.clock.tick(FPS)


def main():
    """Main function to run the game."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - [%(name)s] - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    settings = validate_settings(load_settings())

    db = GameDatabase(settings["db_file"])
    highscores = HighscoreStore(db, max_entries=settings["max_highscore_entries"])
    game = MemoryGame(
        highscores=highscores,
        resolve_delay=settings["resolve_delay"],
        deal_stagger=settings["deal_stagger"],
        ai_delay=settings["ai_delay"]
    )
    game.events.subscribe(GameFinished, lambda e: logger.info("%s won in %s", e.winner.name, format_time(e.elapsed)))

    pygame.init()
    gui = GameGUI(game, settings)
    gui.setup_window()

    try:
        while True:
            difficulty = gui.show_start_screen()
            if difficulty is None:
                break
            if gui.run_game(difficulty):
                if highscores.qualifies(game.result.score):
                    gui.enter_highscore()
                gui.show_highscores()
    finally:
        db.close()
        pygame.quit()
    sys.exit()


if __name__ == "__main__":
    main()
