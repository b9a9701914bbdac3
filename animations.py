"""
Entry/exit transition names handed to each widget render.

Names are animate.css classes. The cycler walks both lists independently
so consecutive renders get different transitions.
"""

import random

from managers import shuffle_in_place

ENTRY_ANIMATIONS = (
    'bounce', 'flash', 'pulse', 'rubberBand', 'shakeX', 'shakeY', 'headShake', 'swing', 'tada', 'wobble',
    'jello', 'heartBeat', 'backInDown', 'backInLeft', 'backInRight', 'backInUp', 'bounceIn', 'bounceInDown',
    'bounceInLeft', 'bounceInRight', 'bounceInUp', 'fadeIn', 'fadeInDown', 'fadeInDownBig', 'fadeInLeft',
    'fadeInLeftBig', 'fadeInRight', 'fadeInRightBig', 'fadeInUp', 'fadeInUpBig', 'fadeInTopLeft',
    'fadeInTopRight', 'fadeInBottomLeft', 'fadeInBottomRight', 'flip', 'flipInX', 'flipInY',
    'lightSpeedInRight', 'lightSpeedInLeft', 'rotateIn', 'rotateInDownLeft', 'rotateInDownRight',
    'rotateInUpLeft', 'rotateInUpRight', 'jackInTheBox', 'rollIn', 'zoomIn', 'zoomInDown', 'zoomInLeft',
    'zoomInRight', 'zoomInUp', 'slideInDown', 'slideInLeft', 'slideInRight', 'slideInUp',
)

EXIT_ANIMATIONS = (
    'backOutDown', 'backOutLeft', 'backOutRight', 'backOutUp', 'bounceOut', 'bounceOutDown', 'bounceOutLeft',
    'bounceOutRight', 'bounceOutUp', 'fadeOut', 'fadeOutDown', 'fadeOutDownBig', 'fadeOutLeft',
    'fadeOutLeftBig', 'fadeOutRight', 'fadeOutRightBig', 'fadeOutUp', 'fadeOutUpBig', 'fadeOutTopLeft',
    'fadeOutTopRight', 'fadeOutBottomRight', 'fadeOutBottomLeft', 'flipOutX', 'flipOutY',
    'lightSpeedOutRight', 'lightSpeedOutLeft', 'rotateOut', 'rotateOutDownLeft', 'rotateOutDownRight',
    'rotateOutUpLeft', 'rotateOutUpRight', 'hinge', 'rollOut', 'zoomOut', 'zoomOutDown', 'zoomOutLeft',
    'zoomOutRight', 'zoomOutUp', 'slideOutDown', 'slideOutLeft', 'slideOutRight', 'slideOutUp',
)


class AnimationCycler:
    def __init__(self, entry=ENTRY_ANIMATIONS, exit=EXIT_ANIMATIONS, rng=None):
        self.entry = list(entry)
        self.exit = list(exit)
        self.entry_index = 0
        self.exit_index = 0
        self.rng = rng or random.Random()

    def shuffle(self):
        shuffle_in_place(self.entry, self.rng)
        shuffle_in_place(self.exit, self.rng)

    def next_entry(self):
        result = self.entry[self.entry_index]
        self.entry_index = (self.entry_index + 1) % len(self.entry)
        return result

    def next_exit(self):
        result = self.exit[self.exit_index]
        self.exit_index = (self.exit_index + 1) % len(self.exit)
        return result

    def next_pair(self):
        return self.next_entry(), self.next_exit()
